"""
Domain services: token lifecycle, progression ledger, currency ledger.
"""
