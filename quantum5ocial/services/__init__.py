"""Business logic services.

Services contain all business logic and are called by routes.
Pure helpers (badge scoring, connection status, tag normalisation, message
merging) are kept free of I/O so they can be tested directly.
"""
