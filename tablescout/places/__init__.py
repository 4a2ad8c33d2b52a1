"""
Place data layer.

Responsibilities:
- Talk to Google Places (New) for text search and place details.
- Collapse identical in-flight searches into one provider call.
- Cache place records (7 days) and search pages (1 hour) in the database.
"""
