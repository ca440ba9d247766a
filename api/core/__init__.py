"""
Shared, cross-cutting code for the gateway.

`core/` holds the small building blocks every route uses (settings,
DB wiring, logging). SQL that targets the invoice table lives in
`invoices/`.
"""
