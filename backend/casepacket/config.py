"""
Configuration management for the immigration packet assistant.
Loads AI collaborator settings and service limits from environment variables.
"""
import os
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file if it exists
load_dotenv()


class Config:
    """Configuration class for AI collaborator credentials and settings."""
    
    # AI Collaborator (OpenAI-compatible chat completions)
    AI_API_KEY: Optional[str] = (
        os.getenv('AI_API_KEY') or os.getenv('GEMINI_API_KEY') or os.getenv('OPENAI_API_KEY')
    )
    AI_API_BASE: str = os.getenv('AI_API_BASE', 'https://api.openai.com/v1')
    AI_MODEL: str = os.getenv('AI_MODEL', 'gpt-4o-mini')
    AI_TIMEOUT: int = int(os.getenv('AI_TIMEOUT', '60'))
    
    # Retry on rate-limited (429) responses
    AI_MAX_RETRIES: int = int(os.getenv('AI_MAX_RETRIES', '3'))
    AI_RETRY_BASE_DELAY: float = float(os.getenv('AI_RETRY_BASE_DELAY', '1.0'))
    
    # Rate Limiting
    MAX_TOTAL_CALLS: int = int(os.getenv('MAX_TOTAL_CALLS', '200'))
    ENABLE_RATE_LIMITING: bool = os.getenv('ENABLE_RATE_LIMITING', 'true').lower() == 'true'
    
    # Intake documents shorter than this are treated as unreadable (scanned images, etc.)
    MIN_READABLE_CHARS: int = int(os.getenv('MIN_READABLE_CHARS', '50'))
    
    # API Settings
    API_HOST: str = os.getenv('API_HOST', '0.0.0.0')
    API_PORT: int = int(os.getenv('API_PORT', '8000'))
    CORS_ORIGINS: list = os.getenv('CORS_ORIGINS', 'http://localhost:3000').split(',')
    LOG_LEVEL: str = os.getenv('LOG_LEVEL', 'INFO').upper()
    
    @classmethod
    def validate(cls) -> bool:
        """
        Validate that configuration values are usable.
        
        A missing AI key is allowed: AI-backed services run in fallback mode.
        """
        if cls.AI_TIMEOUT <= 0:
            raise ValueError("AI_TIMEOUT must be a positive number of seconds.")
        
        if cls.AI_MAX_RETRIES < 0:
            raise ValueError("AI_MAX_RETRIES cannot be negative.")
        
        if cls.MAX_TOTAL_CALLS < 0:
            raise ValueError("MAX_TOTAL_CALLS cannot be negative.")
        
        if not cls.AI_API_BASE:
            raise ValueError("AI_API_BASE environment variable is required.")
        return True
    