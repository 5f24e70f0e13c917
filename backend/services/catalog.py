from decimal import Decimal
from sqlalchemy.orm import Session
from models.product import Product
from exceptions import NotFoundError
from utils.formatting import round_currency


class ProductCatalog:
    """Product lookups the ledger is allowed to make. Swap it out in tests to pin prices."""

    def get_product(self, db: Session, product_id: int) -> Product:
        product = db.query(Product).filter(Product.id == product_id).first()
        if product is None:
            raise NotFoundError("Product", product_id)
        return product

    def base_price(self, db: Session, product_id: int) -> Decimal:
        return round_currency(self.get_product(db, product_id).base_price)
