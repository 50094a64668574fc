"""
Start the recommendation chat backend locally.

Reads PORT from the environment (default 3000) and serves chat_backend.main:app.
"""

import uvicorn

from chat_backend.config import settings

if __name__ == "__main__":
    print("=" * 60)
    print("Starting Product Recommendation Chat Backend")
    print("=" * 60)
    print()
    print("📌 API Endpoints:")
    print(f"   - Health Check:  GET  http://localhost:{settings.PORT}/health")
    print(f"   - Chat:          POST http://localhost:{settings.PORT}/chat")
    print(f"   - API Docs:           http://localhost:{settings.PORT}/docs")
    print()
    print("📝 Test with curl:")
    print(f'   curl -X POST "http://localhost:{settings.PORT}/chat" \\')
    print('     -H "Content-Type: application/json" \\')
    print('     -d \'{"message": "내 강아지는 작아요"}\'')
    print()
    print(f"🤖 Provider: {settings.LLM_PROVIDER}")
    print("=" * 60)
    print("Press Ctrl+C to stop")
    print("=" * 60)
    print()

    uvicorn.run(
        "chat_backend.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.is_development(),
        log_level=settings.LOG_LEVEL.lower()
    )
