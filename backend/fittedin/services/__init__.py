"""
FittedIn Backend — Services
============================

    user_service          lookups and the public projection of a user
    auth_service          registration, login, password hashing
    profile_service       the acting user's fitness profile
    notification_service  inbox and best-effort delivery
    auto_accept_service   seeded-account detection and auto-accept
    connection_service    the connection request lifecycle

Each module ends with a ready-to-use singleton built from `settings`; tests
construct their own instances with an explicit ConnectionPolicy.
"""
