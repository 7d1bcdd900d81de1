# shop/services/product_service.py
from sqlalchemy.orm import Session

from shop.data.models.product import ProductModel
from shop.domain.errors import ProductNotFound, ProductInUse
from shop.domain.schemas import ProductCreate, ProductUpdate, ProductOut
from shop.repos.product_repo import ProductRepo
from shop.utils.logging import get_logger

logger = get_logger(__name__)

# columns that may not be set to null by a partial update
_REQUIRED = {"name", "price", "stock"}


class ProductService:
    """
    Catalogue CRUD over the product ledger.
    Stock only goes down through checkout; an explicit update may restock.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = ProductRepo(db)

    def list_products(self) -> list[ProductOut]:
        return [ProductOut.model_validate(p) for p in self.repo.list_products()]

    def create_product(self, payload: ProductCreate) -> ProductOut:
        product = self.repo.add_product(
            ProductModel(
                name=payload.name,
                description=payload.description,
                price=payload.price,
                stock=payload.stock,
            )
        )
        logger.info(f"Created product {product.id} with stock {product.stock}")
        return ProductOut.model_validate(product)

    def update_product(self, product_id, payload: ProductUpdate) -> ProductOut:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound()

        changes = payload.model_dump(exclude_unset=True)
        for field, value in changes.items():
            if value is None and field in _REQUIRED:
                continue
            setattr(product, field, value)

        # orders keep their own price snapshot, nothing to propagate
        product = self.repo.save(product)
        logger.info(f"Updated product {product_id}: {sorted(changes)}")
        return ProductOut.model_validate(product)

    def delete_product(self, product_id) -> None:
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound()

        if self.repo.is_referenced(product_id):
            raise ProductInUse()

        self.repo.delete_product(product)
        logger.info(f"Deleted product {product_id}")
