"""
Budget Engine Package

Revision lifecycle and tiered price resolution for engineering cost budgets.
Resolves material/labor prices using Company+Region → Company → Region → Global
pricebook precedence and guards every revision mutation through a status lock.
"""

__version__ = "1.0.0"
