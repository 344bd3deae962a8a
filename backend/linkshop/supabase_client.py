from supabase import Client, ClientOptions, create_client

from .config import Settings


def get_supabase(settings: Settings) -> Client:
    url = str(settings.supabase_url)
    key = settings.supabase_key

    if "your-project.supabase.co" in url:
        raise RuntimeError(
            "SUPABASE_URL in .env is still the placeholder (your-project). "
            "Fill in your real project URL and service key."
        )
    # Storage uploads get a fixed timeout; nothing else talks to Supabase.
    options = ClientOptions(storage_client_timeout=settings.media_timeout_seconds)
    return create_client(url, key, options=options)
