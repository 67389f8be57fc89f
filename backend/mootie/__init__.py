"""
Mootie Backend - Application Package
=====================================

Backend of the Mootie moot-court coaching app. One FastAPI application
replaces the per-endpoint serverless handlers.

    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns, envelope
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← documents, chat, speech, scorer
    ├─────────────────────────────────────┤
    │       Provider client (httpx)       │  ← OpenAI REST calls
    └─────────────────────────────────────┘

The backend holds no persistent state: files and vector-store entries live
with the provider, chat history lives in the browser.
"""

__version__ = "1.0.0"
