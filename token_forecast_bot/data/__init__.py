"""
Token catalog and request normalization module.

Maps asset symbols to model indices and turns raw (symbol, date) selections
into validated prediction requests.
"""
