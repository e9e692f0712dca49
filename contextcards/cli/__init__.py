# CLI package for the contextual card loader
"""
Commands:
    contextcards load     — Run the loader
    contextcards check    — Check one resource URI
    contextcards add      — Insert a candidate card
"""
