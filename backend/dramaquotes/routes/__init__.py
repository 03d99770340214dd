"""
Drama Quotes Backend — API Routes Package
=========================================

Route Inventory:
    - auth.py:    POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    - quotes.py:  GET  /api/quotes, GET /api/quotes/{id}, POST /api/quotes
    - dramas.py:  GET  /api/dramas
    - health.py:  GET  /health, GET /

Routes stay thin: pull data from the request, call a service, shape the
response. Errors are raised, not returned; main.py maps them to status codes.
"""
