"""
Row ↔ domain conversion.
"""

from __future__ import annotations

from shopkeep._types import CustomerId, DiscountId, OrderId, ProductId, TenantId
from shopkeep.db import CustomerTable, DiscountTable, OrderLineTable, OrderTable, ProductTable
from shopkeep.domain import (
    Customer,
    DiscountCode,
    Order,
    OrderDraft,
    OrderLine,
    OrderStatus,
    Product,
)


def product_from_row(row: ProductTable) -> Product:
    return Product(
        id=ProductId(row.id),
        tenant=TenantId(row.tenant_id),
        sku=row.sku,
        name=row.name,
        unit_price=row.unit_price,
        stock=row.stock,
        category_id=row.category_id,
    )


def product_to_row(product: Product) -> ProductTable:
    return ProductTable(
        tenant_id=product.tenant.value,
        id=product.id.value,
        sku=product.sku,
        name=product.name,
        unit_price=product.unit_price,
        stock=product.stock,
        category_id=product.category_id,
    )


def customer_from_row(row: CustomerTable) -> Customer:
    return Customer(
        id=CustomerId(row.id),
        tenant=TenantId(row.tenant_id),
        name=row.name,
        phone_number=row.phone_number,
        address=row.address,
        total_spent=row.total_spent,
    )


def customer_to_row(customer: Customer) -> CustomerTable:
    return CustomerTable(
        tenant_id=customer.tenant.value,
        id=customer.id.value,
        name=customer.name,
        phone_number=customer.phone_number,
        address=customer.address,
        total_spent=customer.total_spent,
    )


def discount_from_row(row: DiscountTable) -> DiscountCode:
    return DiscountCode(
        id=DiscountId(row.id),
        tenant=TenantId(row.tenant_id),
        code=row.code,
        amount=row.amount,
        start_date=row.start_date,
        end_date=row.end_date,
        usage_limit=row.usage_limit,
        used_count=row.used_count,
        is_active=row.is_active,
        description=row.description,
    )


def discount_to_row(discount: DiscountCode) -> DiscountTable:
    return DiscountTable(
        tenant_id=discount.tenant.value,
        id=discount.id.value,
        code=discount.code,
        description=discount.description,
        amount=discount.amount,
        start_date=discount.start_date,
        end_date=discount.end_date,
        usage_limit=discount.usage_limit,
        used_count=discount.used_count,
        is_active=discount.is_active,
    )


def order_from_row(row: OrderTable) -> Order:
    return Order(
        id=OrderId(row.id),
        tenant=TenantId(row.tenant_id),
        customer_id=CustomerId(row.customer_id) if row.customer_id is not None else None,
        lines=tuple(
            OrderLine(
                product_id=ProductId(line.product_id),
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price_at_purchase=line.unit_price,
                line_total=line.line_total,
            )
            for line in row.lines
        ),
        subtotal=row.subtotal,
        discount_amount=row.discount_amount,
        final_amount=row.final_amount,
        applied_code=row.applied_code,
        status=OrderStatus(row.status),
        created_at=row.created_at,
    )


def order_to_row(draft: OrderDraft) -> OrderTable:
    return OrderTable(
        tenant_id=draft.tenant.value,
        customer_id=draft.customer_id.value if draft.customer_id is not None else None,
        subtotal=draft.subtotal,
        discount_amount=draft.discount_amount,
        final_amount=draft.final_amount,
        applied_code=draft.applied_code,
        status=OrderStatus.NEW.value,
        created_at=draft.created_at,
        lines=[
            OrderLineTable(
                tenant_id=draft.tenant.value,
                product_id=line.product_id.value,
                product_name=line.product_name,
                quantity=line.quantity,
                unit_price=line.unit_price_at_purchase,
                line_total=line.line_total,
            )
            for line in draft.lines
        ],
    )


__all__ = (
    "product_from_row",
    "product_to_row",
    "customer_from_row",
    "customer_to_row",
    "discount_from_row",
    "discount_to_row",
    "order_from_row",
    "order_to_row",
)
