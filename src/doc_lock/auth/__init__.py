# -*- coding: utf-8 -*-
"""Authentification opérateur (middleware ASGI + contextvars)."""
