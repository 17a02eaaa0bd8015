"""
Customer registration database model.

Submission record from the public registration form. Never mutated after
creation; admins may delete it.
"""

from sqlalchemy import Column, Integer, String, Text
from backend.app.db.session import Base
from backend.app.models.mixins import TimestampMixin


class CustomerRegistration(TimestampMixin, Base):
    __tablename__ = "customer_registrations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    entry_number = Column(String(10), nullable=False, index=True)
    name = Column(String(100), nullable=False)
    hospital = Column(String(120), nullable=False)
    address = Column(String(200), nullable=False)
    position = Column(String(80), nullable=False)
    contact_number = Column(String(20), nullable=False)
    email = Column(String(255), nullable=False)
    products_interest = Column(Text, nullable=True)

    def __repr__(self):
        return f"<CustomerRegistration(id={self.id}, entry_number='{self.entry_number}')>"
