"""
Personalised recommendation pipeline.

Responsibilities:
- Gate requests on a city, saved preferences and enough interaction history.
- Aggregate recent interactions into likes, passes and maybes for the prompt.
- Ask the LLM for named suggestions and resolve each to a real place.
- Return resolved recommendations in the order the LLM ranked them.
"""
