"""
Voyage Backend - Services Layer
================================

Business logic between the routes (HTTP) and the ORM (persistence).

Service Inventory:
    - UserService:      accounts, credentials, roles
    - TripService:      trips, ordered steps, share and import
    - ProviderClient:   outbound provider HTTP calls (retries, circuit breakers)
    - TravelService:    provider search aggregation, bookings, verification
    - CatalogService:   sleep, eat, drink and enjoy records and their searches

Services are stateless (apart from the provider circuit breakers) and get
the request's AsyncSession as an argument, so they can be unit-tested with a
mocked session.
"""
