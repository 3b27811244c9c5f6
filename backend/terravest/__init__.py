"""
Terravest Core - investment products, wallet ledger and referral commissions
"""
