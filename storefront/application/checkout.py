"""Use case: one checkout attempt, from address loading to order submission."""
from __future__ import annotations

from typing import Any, Mapping

from pydantic import ValidationError

from logging_config import logger
from storefront.api.resources import AddressesAPI, OrdersAPI
from storefront.application.results import ActionResult
from storefront.core.auth_store import Audience, AuthStore
from storefront.core.cart_store import CartStore
from storefront.core.config import ShippingConfig
from storefront.core.constants import CART_PATH, LOGIN_PATH, ORDERS_PATH
from storefront.core.exceptions import ApiException, AuthenticationException
from storefront.core.money import OrderTotals, calc_order_totals, quantize
from storefront.core.navigation import Navigator, Notifier
from storefront.domain.checkout_fsm import (
    TERMINAL_STATES,
    CheckoutState,
    validate_checkout_transition,
)
from storefront.domain.order import PaymentMethod
from storefront.domain.schemas import (
    Address,
    AddressInput,
    OrderCreated,
    OrderCreateRequest,
    OrderItemInput,
    ShippingAddress,
)

REQUIRED_FIELDS_MESSAGE = "Please fill in all required fields"
SELECT_ADDRESS_MESSAGE = "Please select a delivery address"
ADDRESS_NOT_FOUND_MESSAGE = "Selected address not found"
ORDER_FAILED_MESSAGE = "Failed to place order"
ADDRESSES_LOADING_MESSAGE = "Please wait, addresses are still loading"
ONLINE_PAYMENT_NOTICE = (
    "Online payment is coming soon. For now, please use Cash on Delivery (COD)."
)


SUBMITTABLE_STATES = frozenset({CheckoutState.ADDRESS_READY, CheckoutState.FAILED})


class InvalidCheckoutTransition(RuntimeError):
    pass


class CheckoutOrchestrator:
    """
    State machine over a single checkout attempt.

    LOADING_ADDRESSES -> ADDRESS_READY -> SUBMITTING -> SUCCESS | FAILED.
    Totals are never stored: :meth:`totals` reads the live cart each call.
    """

    def __init__(
        self,
        addresses_api: AddressesAPI,
        orders_api: OrdersAPI,
        cart_store: CartStore,
        auth_store: AuthStore,
        navigator: Navigator,
        notifier: Notifier,
        shipping: ShippingConfig | None = None,
    ):
        self.addresses_api = addresses_api
        self.orders_api = orders_api
        self.cart_store = cart_store
        self.auth_store = auth_store
        self.navigator = navigator
        self.notifier = notifier
        self.shipping = shipping or ShippingConfig()

        self.state = CheckoutState.IDLE
        self.addresses: list[Address] = []
        self.selected_address_id: int | None = None
        self.payment_method: str = PaymentMethod.CASH_ON_DELIVERY
        self.error: str | None = None
        self.last_order: OrderCreated | None = None
        self.saving_address = False

    # ---------- state machine ----------

    def _transition(self, target: CheckoutState) -> None:
        result = validate_checkout_transition(self.state, target)
        if not result.allowed:
            raise InvalidCheckoutTransition(result.reason)
        logger.debug(f"Checkout {self.state.value} -> {target.value}")
        self.state = target

    def _redirect(self, path: str) -> None:
        if not self.is_finished:
            self._transition(CheckoutState.REDIRECTED)
        self.navigator.redirect(path)

    @property
    def is_authenticated(self) -> bool:
        return self.auth_store.is_authenticated(Audience.USER)

    @property
    def is_submitting(self) -> bool:
        return self.state == CheckoutState.SUBMITTING

    @property
    def is_finished(self) -> bool:
        return self.state in TERMINAL_STATES

    # ---------- derived values ----------

    def totals(self) -> OrderTotals:
        return calc_order_totals(self.cart_store.get_total_price(), self.shipping)

    @property
    def selected_address(self) -> Address | None:
        for address in self.addresses:
            if address.address_id == self.selected_address_id:
                return address
        return None

    @property
    def has_addresses(self) -> bool:
        return bool(self.addresses)

    @property
    def can_submit(self) -> bool:
        return (
            self.is_authenticated
            and not self.cart_store.is_empty
            and self.selected_address is not None
            and self.state in SUBMITTABLE_STATES
        )

    # ---------- addresses ----------

    async def open(self) -> None:
        """Enter the checkout screen."""
        if not self.is_authenticated:
            self._redirect(LOGIN_PATH)
            return
        if self.cart_store.is_empty:
            self._redirect(CART_PATH)
            return
        await self.refresh_addresses()

    def check_cart(self) -> bool:
        """Leave for the cart page once the cart has been emptied elsewhere."""
        if self.cart_store.is_empty and self.state in (
            CheckoutState.ADDRESS_READY,
            CheckoutState.FAILED,
        ):
            self._redirect(CART_PATH)
            return False
        return True

    async def refresh_addresses(self) -> None:
        if self.is_submitting or self.is_finished:
            return
        self._transition(CheckoutState.LOADING_ADDRESSES)
        try:
            self.addresses = await self.addresses_api.list()
        except AuthenticationException:
            self.addresses = []
            self.selected_address_id = None
            self._transition(CheckoutState.REDIRECTED)
            return
        except ApiException as exc:
            self.addresses = []
            self.notifier.error(exc.message)
        self._ensure_selection()
        self._transition(CheckoutState.ADDRESS_READY)

    def _ensure_selection(self) -> None:
        if self.selected_address is not None:
            return
        default = next((address for address in self.addresses if address.is_default), None)
        if default is not None:
            self.selected_address_id = default.address_id
        elif self.addresses:
            self.selected_address_id = self.addresses[0].address_id
        else:
            self.selected_address_id = None

    def select_address(self, address_id: int) -> bool:
        if not any(address.address_id == address_id for address in self.addresses):
            self.notifier.error(ADDRESS_NOT_FOUND_MESSAGE)
            return False
        self.selected_address_id = address_id
        return True

    def _validate_address(self, form: AddressInput | Mapping[str, Any]) -> AddressInput | None:
        if isinstance(form, AddressInput):
            return form
        try:
            return AddressInput.model_validate(dict(form))
        except ValidationError:
            self.notifier.error(REQUIRED_FIELDS_MESSAGE)
            return None

    async def add_address(self, form: AddressInput | Mapping[str, Any]) -> ActionResult:
        address = self._validate_address(form)
        if address is None:
            return ActionResult(False, REQUIRED_FIELDS_MESSAGE)
        return await self._save_address(
            lambda: self.addresses_api.add(address),
            "Address added successfully!",
        )

    async def edit_address(
        self, address_id: int, form: AddressInput | Mapping[str, Any]
    ) -> ActionResult:
        address = self._validate_address(form)
        if address is None:
            return ActionResult(False, REQUIRED_FIELDS_MESSAGE)
        return await self._save_address(
            lambda: self.addresses_api.update(address_id, address),
            "Address updated successfully!",
        )

    async def _save_address(self, send, success_message: str) -> ActionResult:
        if self.is_finished:
            return ActionResult(False, "Order already placed")
        if self.is_submitting:
            return ActionResult(False, "Order is already being placed")
        if not self.is_authenticated:
            self._redirect(LOGIN_PATH)
            return ActionResult(False, "Please login to continue")
        if self.saving_address:
            return ActionResult(False, "Address is already being saved")
        self.saving_address = True
        try:
            await send()
        except AuthenticationException as exc:
            self._transition(CheckoutState.REDIRECTED)
            return ActionResult(False, exc.message)
        except ApiException as exc:
            self.notifier.error(exc.message)
            return ActionResult(False, exc.message)
        finally:
            self.saving_address = False
        self.notifier.success(success_message)
        await self.refresh_addresses()
        return ActionResult(True)

    # ---------- payment ----------

    def select_payment_method(self, method: str) -> bool:
        """Only cash on delivery is enabled; anything else keeps the old choice."""
        if not PaymentMethod.is_enabled(method):
            self.notifier.info(ONLINE_PAYMENT_NOTICE)
            return False
        self.payment_method = PaymentMethod.normalize(method)
        return True

    # ---------- submission ----------

    def build_order(self, address: Address) -> OrderCreateRequest:
        """Snapshot the cart and the address as they are right now."""
        totals = self.totals()
        return OrderCreateRequest(
            items=[
                OrderItemInput(
                    product_id=item.product_id,
                    product_name=item.product_name,
                    quantity=item.quantity,
                    price=quantize(item.discount_price),
                )
                for item in self.cart_store.items
            ],
            shipping_address=ShippingAddress.from_address(address),
            payment_method=self.payment_method,
            subtotal=totals.subtotal,
            shipping_amount=totals.shipping_amount,
            tax_amount=totals.tax_amount,
            total_amount=totals.total_amount,
        )

    async def submit(self) -> ActionResult:
        if self.is_finished:
            return ActionResult(False, "Order already placed", value=self.last_order)
        if self.is_submitting:
            return ActionResult(False, "Order is already being placed")
        if not self.is_authenticated:
            self._redirect(LOGIN_PATH)
            return ActionResult(False, "Please login to continue")
        if self.cart_store.is_empty:
            self._redirect(CART_PATH)
            return ActionResult(False, "Your cart is empty")
        if self.state not in SUBMITTABLE_STATES:
            return ActionResult(False, ADDRESSES_LOADING_MESSAGE)
        if self.selected_address_id is None:
            self.notifier.error(SELECT_ADDRESS_MESSAGE)
            return ActionResult(False, SELECT_ADDRESS_MESSAGE)
        address = self.selected_address
        if address is None:
            self.notifier.error(ADDRESS_NOT_FOUND_MESSAGE)
            return ActionResult(False, ADDRESS_NOT_FOUND_MESSAGE)

        order = self.build_order(address)
        self._transition(CheckoutState.SUBMITTING)
        self.error = None
        try:
            created = await self.orders_api.create(order)
        except AuthenticationException as exc:
            self._transition(CheckoutState.REDIRECTED)
            return ActionResult(False, exc.message)
        except ApiException as exc:
            self.error = exc.message or ORDER_FAILED_MESSAGE
            self._transition(CheckoutState.FAILED)
            logger.error(f"Order submission failed: {self.error}")
            self.notifier.error(self.error)
            return ActionResult(False, self.error)
        except Exception as exc:
            self.error = ORDER_FAILED_MESSAGE
            self._transition(CheckoutState.FAILED)
            logger.error(f"Order submission failed unexpectedly: {exc!r}")
            self.notifier.error(self.error)
            return ActionResult(False, self.error)

        self.cart_store.clear_cart()
        self.last_order = created
        self._transition(CheckoutState.SUCCESS)
        logger.info(f"Order {created.order_number} placed ({order.total_amount})")
        self.notifier.success(f"Order #{created.order_number} placed successfully!")
        self.navigator.redirect(ORDERS_PATH)
        return ActionResult(True, value=created)
