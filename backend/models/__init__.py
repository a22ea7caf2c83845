# Importing the package registers every table on Base.metadata
from models.users import User
from models.category import Category
from models.product import Product
from models.sale import Sale, SaleItem
from models.supplier import Supplier
from models.log import ActivityLog

__all__ = ["User", "Category", "Product", "Sale", "SaleItem", "Supplier", "ActivityLog"]
