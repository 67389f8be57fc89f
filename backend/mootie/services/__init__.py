# Services package init
"""
Mootie Backend - Services Layer
=================================

Service Inventory:
    - LLMProvider (abstract): provider operations the services depend on
    - OpenAIProvider: httpx implementation over the OpenAI REST API
    - DocumentService: upload / delete / list / verify-deleted state machines
    - ChatService: persona prompt, file search, citations, optional speech
    - SpeechService: transcription and text-to-speech
    - scorer: pure heuristic rubric scoring and coaching notes

Services receive their provider explicitly, one per request; none of them
keeps state between requests.
"""
