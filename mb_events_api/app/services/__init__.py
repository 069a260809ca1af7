"""
Service layer.

Services hold the business logic and talk to SQLite, the media host and
the mail server.  Endpoints stay thin: they parse the request, call a
service and wrap the result in a response envelope.
"""
