"""
Development settings for the Vindinium trainer project.
"""
from .base import *

DEBUG = True

ALLOWED_HOSTS = ['localhost', '127.0.0.1', '0.0.0.0']

# SQLite for easy development
DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': BASE_DIR / 'db.sqlite3',
    }
}

# Uncomment to use PostgreSQL in development
# DATABASES = {
#     'default': {
#         'ENGINE': 'django.db.backends.postgresql',
#         'NAME': os.environ.get('DB_NAME', 'vindinium'),
#         'USER': os.environ.get('DB_USER', 'vindinium'),
#         'PASSWORD': os.environ.get('DB_PASSWORD', 'devpassword'),
#         'HOST': os.environ.get('DB_HOST', 'localhost'),
#         'PORT': os.environ.get('DB_PORT', '5432'),
#     }
# }

# Short matches keep the feedback loop fast while developing
EVOLUTION = {
    **EVOLUTION,
    'max_turns': 150,
}
