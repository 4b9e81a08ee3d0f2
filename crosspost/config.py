from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Crosspost settings loaded from environment."""

    # Service
    service_name: str = "crosspost"
    log_level: str = "INFO"
    log_json: bool = False
    http_timeout: float = 30.0

    # Bluesky
    bluesky_identifier: str = ""
    bluesky_password: str = ""
    bluesky_host: str = "bsky.social"

    # Mastodon
    mastodon_access_token: str = ""
    mastodon_host: str = ""

    # Discord
    discord_bot_token: str = ""
    discord_channel_id: str = ""
    discord_webhook_url: str = ""

    # Telegram
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""

    # Dev.to
    devto_api_key: str = ""

    # LinkedIn API
    linkedin_access_token: str = ""
    linkedin_organization_id: str = ""  # Empty posts as the token's member

    # Threads
    threads_access_token: str = ""
    threads_user_id: str = ""

    # Slack
    slack_bot_token: str = ""
    slack_channel: str = ""

    # Webflow
    webflow_access_token: str = ""
    webflow_site_id: str = ""
    webflow_collection_id: str = ""

    # Meta API (Facebook, Instagram)
    facebook_access_token: str = ""
    facebook_page_id: str = ""  # Empty posts to the token owner's feed
    instagram_access_token: str = ""
    instagram_account_id: str = ""

    # Twitter (OAuth 1.0a) and X (OAuth 2.0)
    twitter_api_consumer_key: str = ""
    twitter_api_consumer_secret: str = ""
    twitter_access_token_key: str = ""
    twitter_access_token_secret: str = ""
    x_access_token: str = ""

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
