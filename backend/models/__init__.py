from models.vendor import Vendor, VendorStatus
from models.product import Product, ProductStatus
from models.vendor_product_tag import VendorProductTag
from models.variant_type import VariantType
from models.product_variant import ProductVariant
from models.variant_combination import VariantCombination
from models.variant_combination_variant import VariantCombinationVariant
from models.supply import Supply
from models.inventory import Inventory
from models.inventory_history import InventoryHistory, InventoryChangeType
from models.carts import Cart
from models.cart_items import CartItem
from models.wishlists import Wishlist
from models.wishlist_items import WishlistItem
from models.orders import Order, OrderStatus
from models.order_items import OrderItem

__all__ = ['Cart', 'CartItem', 'Inventory', 'InventoryChangeType', 'InventoryHistory', 'Order', 'OrderItem', 'OrderStatus', 'Product', 'ProductStatus', 'ProductVariant', 'Supply', 'VariantCombination', 'VariantCombinationVariant', 'VariantType', 'Vendor', 'VendorProductTag', 'VendorStatus', 'Wishlist', 'WishlistItem',]
