from decimal import Decimal

from fastapi import APIRouter, Depends, Path, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.database import get_session
from app.schemas.product import ProductRequest, ProductResponse
from app.services.product_service import ProductService

router = APIRouter(prefix="/api/products", tags=["products"])

# Ids are signed 64-bit integers in the store
ID_MIN = -(2 ** 63)
ID_MAX = 2 ** 63 - 1


def get_product_service(session: AsyncSession = Depends(get_session)) -> ProductService:
    return ProductService(session)


# Fixed paths are registered before "/{product_id}" so they are not captured by it


@router.get("", response_model=list[ProductResponse])
async def get_all_products(service: ProductService = Depends(get_product_service)):
    return await service.get_all_products()


@router.post("", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(request: ProductRequest, service: ProductService = Depends(get_product_service)):
    return await service.create_product(request)


@router.get("/search/name", response_model=list[ProductResponse])
async def search_products_by_name(
    name: str = Query(...),
    service: ProductService = Depends(get_product_service)
):
    return await service.search_products_by_name(name)


@router.get("/search/description", response_model=list[ProductResponse])
async def search_products_by_description(
    description: str = Query(...),
    service: ProductService = Depends(get_product_service)
):
    return await service.search_products_by_description(description)


@router.get("/search/price", response_model=list[ProductResponse])
async def search_products_by_price_range(
    min_price: Decimal = Query(..., alias="minPrice"),
    max_price: Decimal = Query(..., alias="maxPrice"),
    service: ProductService = Depends(get_product_service)
):
    return await service.search_products_by_price_range(min_price, max_price)


@router.get("/search", response_model=list[ProductResponse])
async def search_products(
    keyword: str | None = None,
    service: ProductService = Depends(get_product_service)
):
    """Products whose name or description contains the keyword."""
    return await service.search_products(keyword)


@router.get("/count", response_model=int)
async def get_total_product_count(service: ProductService = Depends(get_product_service)):
    return await service.get_total_product_count()


@router.get("/count/price", response_model=int)
async def get_product_count_by_price(
    price: Decimal = Query(...),
    service: ProductService = Depends(get_product_service)
):
    """Number of products priced at or above ``price``."""
    return await service.get_product_count_by_price_greater_than_equal(price)


@router.get("/above-average", response_model=list[ProductResponse])
async def get_products_above_average_price(service: ProductService = Depends(get_product_service)):
    return await service.get_products_above_average_price()


@router.get("/exists/name", response_model=bool)
async def product_exists_by_name(
    name: str = Query(...),
    service: ProductService = Depends(get_product_service)
):
    return await service.product_exists_by_name(name)


@router.get("/{product_id}", response_model=ProductResponse)
async def get_product_by_id(
    product_id: int = Path(..., ge=ID_MIN, le=ID_MAX),
    service: ProductService = Depends(get_product_service)
):
    return await service.get_product(product_id)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    request: ProductRequest,
    product_id: int = Path(..., ge=ID_MIN, le=ID_MAX),
    service: ProductService = Depends(get_product_service)
):
    return await service.update_product(product_id, request)


@router.delete("/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: int = Path(..., ge=ID_MIN, le=ID_MAX),
    service: ProductService = Depends(get_product_service)
):
    await service.delete_product(product_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{product_id}/exists", response_model=bool)
async def product_exists(
    product_id: int = Path(..., ge=ID_MIN, le=ID_MAX),
    service: ProductService = Depends(get_product_service)
):
    return await service.product_exists(product_id)
