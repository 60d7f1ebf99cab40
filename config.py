import os


def _flag(name: str, default: str = "true") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


class Config:
    SECRET_KEY = os.getenv('SECRET_KEY', 'dev_secret_key')
    SQLALCHEMY_DATABASE_URI = os.getenv('DATABASE_URI', 'sqlite:///secure_stock.db')
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

    # outbound HTTP
    HTTP_TIMEOUT = int(os.getenv('HTTP_TIMEOUT', 30))

    # chat assistant (OpenAI-compatible chat completions)
    OPENAI_API_KEY = os.getenv('OPENAI_API_KEY')
    OPENAI_BASE_URL = os.getenv('OPENAI_BASE_URL', 'https://api.openai.com/v1')
    OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o')
    CHAT_MAX_TOKENS = int(os.getenv('CHAT_MAX_TOKENS', 2000))
    CHAT_TEMPERATURE = float(os.getenv('CHAT_TEMPERATURE', 0.7))
    CHAT_HISTORY_LIMIT = int(os.getenv('CHAT_HISTORY_LIMIT', 50))

    # maintenance notifications (Resend)
    RESEND_API_KEY = os.getenv('RESEND_API_KEY')
    RESEND_API_URL = os.getenv('RESEND_API_URL', 'https://api.resend.com/emails')
    MAIL_FROM = os.getenv('MAIL_FROM', 'Secure Stock <onboarding@resend.dev>')
    MAIL_ENABLED = _flag('MAIL_ENABLED')
