"""
Inventory capacity ledger tables.

Models:
- Inventory (ceilings, running occupied totals, geographic point)
- InventoryHolding (quantity per product per inventory, with its committed weight/volume)
- LedgerMovement (append-only log of every committed ledger mutation)
"""
