"""
FittedIn Backend — API Routers
===============================

    auth.py           POST /api/auth/register, POST /api/auth/login, GET /api/auth/me
    users.py          GET/PUT /api/users/{user_id}
    profiles.py       GET/PUT /api/profiles/me, GET /api/profiles/{user_id}
    connections.py    /api/connections/...
    notifications.py  /api/notifications/...
    goals.py          /api/goals/...
    posts.py          /api/posts/...
    activities.py     GET /api/activities, /feed, /stats
    health.py         GET  /health

Route handlers only parse input, resolve the acting user and delegate to a
service; every rule lives in fittedin.services.
"""
