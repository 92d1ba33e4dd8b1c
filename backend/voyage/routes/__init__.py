"""
Voyage Backend - API Routes Package
====================================

Route Inventory:
    - health.py:   GET /health                       (every service)
    - auth.py:     /api/auth/register, /api/auth/login (user service)
    - users.py:    /api/users...                      (user service)
    - trips.py:    /trips...                          (trip service)
    - travel.py:   /travel..., /verify/{id}           (travel service)
    - catalog.py:  /sleep, /eat, /drink, /enjoy       (catalog services)

Routes stay thin: read the request, call a service, shape the response.
Errors are raised as VoyageError subclasses and rendered by the handlers
registered in voyage.main.
"""
