from datetime import datetime

from pydantic import BaseModel


class DashboardStats(BaseModel):
    # Libros / inventario
    total_books: int
    total_book_copies: int
    total_available_copies: int

    # Socios
    total_members: int

    # Circulación
    total_circulation: int
    issued_books: int
    overdue_books: int

    generated_at: datetime
