# backend/wsgi.py
from omnistock import create_app

app = create_app()
