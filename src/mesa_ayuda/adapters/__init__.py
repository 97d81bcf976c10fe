"""
Adapters: implementaciones de los Ports del Core.
"""
