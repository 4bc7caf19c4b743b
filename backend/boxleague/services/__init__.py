"""
Services Layer

Pure league logic (outcome resolver, delay negotiation, standings,
analytics, ranking, achievements) that:
- Accepts point-in-time records (boxleague.services.records)
- Returns freshly built result structures
- Does NOT depend on HTTP request/response objects
- Does NOT mutate its inputs

reference_cache is the one service that reads the database; it turns rows
into records for everything else.
"""
