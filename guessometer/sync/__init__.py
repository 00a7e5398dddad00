"""
Third-party record sync (Airtable).
"""
