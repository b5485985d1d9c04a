# -*- coding: utf-8 -*-
"""Services métier : stockage, verrous, annuaire."""
