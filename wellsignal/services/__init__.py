"""wellsignal services.

Each service is a self-contained package with its own HTTP handler and
tests; shared models, database access and utilities live in
``wellsignal.shared``.
"""
