"""
Drama Quotes Backend — Services Layer
=====================================

Service Inventory:
    - CredentialManager (credential_service): password hash / verify
    - TokenService (token_service): session token issue / verify
    - DramaResolver (drama_resolver): find-or-create drama by exact title
    - QuoteRepository (quote_service): quote insert and joined reads
    - UserService (user_service): registration and login flows
    - DramaService (drama_service): drama listing

Each module exposes a singleton built from settings. Services that touch the
database take the AsyncSession per call; DramaResolver owns short sessions
of its own.
"""
