"""
Service layer abstraction.

Each service encapsulates business logic for a domain: the book
catalog, the user directory and the reservation ledger.  API handlers
call services and never touch the database directly.
"""
