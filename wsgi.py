"""
Web Server Gateway Interface (WSGI) entry point
"""
from promo_admin import create_app

app = create_app()
