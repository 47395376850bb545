"""Resort revenue recognition and profit-sharing invoicing service."""
