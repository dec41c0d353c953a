"""Entry point for the Workout Import Service."""

if __name__ == "__main__":
    import uvicorn
    from workout_import.core.config import settings

    print(f"🚀 Starting {settings.api_title} v{settings.api_version}")
    print(f"📊 Cache TTLs: page {settings.page_cache_ttl_seconds}s, result {settings.result_cache_ttl_seconds}s")
    print(f"🤖 Inference: {settings.text_model} (text), {settings.vision_model} (vision)")
    print(f"📝 Log level: {settings.log_level}")

    uvicorn.run(
        "workout_import.main:app",  # Use string import for hot reload
        host="0.0.0.0",
        port=8000,
        reload=settings.debug_mode,
        log_level=settings.log_level.lower()
    )
