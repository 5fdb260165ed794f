"""
Column types shared by the models.
"""

from sqlalchemy import DECIMAL

# Amounts, balances, payouts and bonuses: 18 digits, 8 after the point
MoneyType = DECIMAL(18, 8)
