"""
Django App de la mesa de ayuda.
"""
