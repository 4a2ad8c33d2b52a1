"""
LLM integration layer.

Responsibilities:
- Manage Groq API configuration and credentials.
- Build the recommendation prompt from profile, preferences, intent and history.
- Call Groq to name restaurants worth trying, with a reason and confidence.
- Parse the free-text reply defensively; malformed output yields no suggestions.
"""
