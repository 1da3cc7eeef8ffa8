"""
Arena Service - REST backend for esports tournaments

Responsibilities:
- User accounts and token authentication
- Tournament registry (CRUD, competitor registration/withdrawal)
- Match scheduling and results
- News publishing and search
"""
