# flashmarket/models/product.py
from sqlmodel import SQLModel, Field


ProductId = int | str


class Product(SQLModel):
    """
    Catalog entry as delivered by the product source.

    The cart only reads these values:
      - id, name, price, stock, category, image, description
    """

    id: ProductId = Field(description="Stable catalog identifier")

    name: str = Field(
        min_length=1,
        description="Display name of the product",
    )

    price: float = Field(
        ge=0,
        description="Unit base price",
    )

    stock: int | None = Field(
        default=None,
        ge=0,
        description="Units on hand; None means the source did not report one",
    )

    category: str | None = Field(
        default=None,
        description="Catalog category slug",
    )

    image: str | None = Field(
        default=None,
        description="Image URL",
    )

    description: str | None = Field(
        default=None,
        description="Long description",
    )
