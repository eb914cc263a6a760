from mockstripe.services.billing.accounts import Accounts, accounts
from mockstripe.services.billing.cards import Cards, cards
from mockstripe.services.billing.charges import Charges, charges
from mockstripe.services.billing.checkout_sessions import CheckoutSessions, checkout_sessions
from mockstripe.services.billing.customers import Customers, customers
from mockstripe.services.billing.disputes import Disputes, disputes
from mockstripe.services.billing.payment_intents import PaymentIntents, payment_intents
from mockstripe.services.billing.plans import Plans, plans
from mockstripe.services.billing.prices import Prices, prices
from mockstripe.services.billing.products import Products, products
from mockstripe.services.billing.refunds import Refunds, refunds
from mockstripe.services.billing.skus import Skus, skus
from mockstripe.services.billing.subscriptions import Subscriptions, subscriptions
from mockstripe.services.billing.tax_rates import TaxRates, tax_rates

__all__ = [
    "Accounts",
    "Cards",
    "Charges",
    "CheckoutSessions",
    "Customers",
    "Disputes",
    "PaymentIntents",
    "Plans",
    "Prices",
    "Products",
    "Refunds",
    "Skus",
    "Subscriptions",
    "TaxRates",
    "accounts",
    "cards",
    "charges",
    "checkout_sessions",
    "customers",
    "disputes",
    "payment_intents",
    "plans",
    "prices",
    "products",
    "refunds",
    "skus",
    "subscriptions",
    "tax_rates",
]
