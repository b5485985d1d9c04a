# -*- coding: utf-8 -*-
"""Doc Lock : verrouillage par bail des documents en édition collaborative."""
