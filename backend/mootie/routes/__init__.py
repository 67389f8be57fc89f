# Routes package init
"""
Mootie Backend - API Routes Package
=====================================

Route Inventory:
    - documents.py:  POST /upload-document, DELETE /delete-file,
                     GET /list-files, GET /vector-store
    - chat.py:       POST /send-message
    - speech.py:     POST /transcribe, POST /tts
    - scoring.py:    POST /score, POST /ai-notes
    - health.py:     GET  /health

Every route is mounted both at the root and under /api, the prefix the
browser client calls.

Routes stay thin: they pull data out of the request, call a service and
wrap the result in the envelope. Errors propagate to the global handlers.
"""
