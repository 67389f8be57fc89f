"""
Mootie Backend - Middleware Package
=====================================

Middleware Chain:
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → [Unhandled Error] → Route Handler

    1. Request ID first so every later log line carries the correlation id
    2. Logging measures the full handler duration
    3. CORS answers browser preflight requests
    4. Unhandled errors become a 500 envelope inside CORS
"""
