import os
from dotenv import load_dotenv

load_dotenv()


class Config:
    # Provide a safe development fallback to avoid 500s when SECRET_KEY is missing.
    SECRET_KEY = os.getenv('SECRET_KEY') or 'dev-secret-key-change-me'
    DATABASE_URL = os.getenv('DATABASE_URL')
    SQLALCHEMY_DATABASE_URI = DATABASE_URL or 'sqlite:///farmcms.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Bearer tokens issued by /api/auth/signin
    JWT_SECRET = os.getenv('JWT_SECRET')
    JWT_EXPIRES_IN = os.getenv('JWT_EXPIRES_IN', '7d')

    # Object storage (S3 or an S3-compatible endpoint such as MinIO)
    AWS_ACCESS_KEY_ID = os.getenv('AWS_ACCESS_KEY_ID')
    AWS_SECRET_ACCESS_KEY = os.getenv('AWS_SECRET_ACCESS_KEY')
    AWS_REGION = os.getenv('AWS_REGION', 'eu-west-1')
    AWS_S3_BUCKET_NAME = os.getenv('AWS_S3_BUCKET_NAME', 'maaayufarmstorage')
    AWS_S3_ENDPOINT_URL = os.getenv('AWS_S3_ENDPOINT_URL')

    MAX_UPLOAD_SIZE = int(os.getenv('MAX_UPLOAD_SIZE', str(20 * 1024 * 1024)))
    MAX_CONTENT_LENGTH = MAX_UPLOAD_SIZE + 1024 * 1024

    RATELIMIT_STORAGE_URI = os.getenv('RATELIMIT_STORAGE_URI', 'memory://')
