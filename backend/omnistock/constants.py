# Overview: Demo tenant seed data and fixed advisor messages.

DEMO_PASSWORD = "Password123!"

# (email, name, role, is_active)
DEMO_USERS = [
    ("admin@omnistock.com", "Administrador Global", "ADMIN", True),
    ("vendedor@omnistock.com", "Vendedor João", "EMPLOYEE", True),
    ("inativo@omnistock.com", "Ex-Funcionário", "EMPLOYEE", False),
]

DEMO_PRODUCTS = [
    {
        "name": "Teclado Mecânico RGB",
        "category": "Periféricos",
        "barcode": "789123456001",
        "cost_price_cents": 15000,
        "margin_bps": 4000,
        "selling_price_cents": 22000,
        "stock_quantity": 15,
        "min_stock": 5,
        "notes": "Produto de alta rotatividade",
    },
    {
        "name": 'Monitor 24" 144Hz',
        "category": "Monitores",
        "barcode": "789123456002",
        "cost_price_cents": 80000,
        "margin_bps": 3000,
        "selling_price_cents": 110000,
        "stock_quantity": 4,
        "min_stock": 5,
        "notes": "Estoque crítico",
    },
]

ADVISOR_EMPTY_MESSAGE = "No automatic suggestions at the moment."
ADVISOR_ERROR_MESSAGE = "Could not reach the pricing AI."
