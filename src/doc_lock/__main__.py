# -*- coding: utf-8 -*-
"""
Point d'entrée pour python -m doc_lock.

Permet de démarrer le serveur avec :
    python -m doc_lock
"""

from .server import main

if __name__ == "__main__":
    main()
