"""LiftLog — training analytics: PR detection, progression advice, volume balance."""
__version__ = "1.0.0"
