"""Command-line interface for shopdesk."""

import argparse
import json
import logging
import sys

from . import __version__
from .config import Settings
from .dashboard import Dashboard
from .errors import ShopdeskError
from .images import load_image
from .models import Product, RemovePurchaseLine
from .utils import format_money, format_product, format_user


def get_dashboard() -> Dashboard:
    """Get a Dashboard configured from the environment."""
    return Dashboard.create(Settings.from_env())


def configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else Settings.from_env().log_level
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def cmd_signup(args: argparse.Namespace) -> int:
    """Register a new user."""
    try:
        with get_dashboard() as dashboard:
            profile_image = load_image(args.profile_image, profile=True) if args.profile_image else None
            user = dashboard.users.signup(
                full_name=args.name,
                email=args.email,
                password=args.password,
                phone_number=args.phone or "",
                gender=args.gender or "",
                profile_image=profile_image,
                address1=args.address1 or "",
                address2=args.address2 or "",
                city=args.city or "",
                state=args.state or "",
                zip=args.zip or "",
                country=args.country or "",
            )

        print(f"Signed up: {user.id}")
        print(f"  Email: {user.email}")
        if user.address:
            print(f"  Address: {user.address}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_login(args: argparse.Namespace) -> int:
    """Log in and persist the session."""
    try:
        with get_dashboard() as dashboard:
            user = dashboard.users.login(args.email, args.password)

        print(f"Logged in as {user.full_name or user.email}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_logout(args: argparse.Namespace) -> int:
    """Clear the persisted session."""
    try:
        with get_dashboard() as dashboard:
            dashboard.users.logout()

        print("Logged out")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_whoami(args: argparse.Namespace) -> int:
    """Show the current session user."""
    try:
        with get_dashboard() as dashboard:
            user = dashboard.session.current_user

        if user is None:
            print("Not logged in")
            return 1
        print(format_user(user, verbose=True))
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_users_list(args: argparse.Namespace) -> int:
    """List users."""
    try:
        with get_dashboard() as dashboard:
            dashboard.users.fetch_users()
            users = dashboard.users.search(args.search or "")

        if not users:
            print("No users found.")
            return 0

        if args.json:
            print(json.dumps([u.to_dict() for u in users], indent=2))
        else:
            print(f"Users ({len(users)}):")
            for user in users:
                print(format_user(user, verbose=args.long))
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_users_delete(args: argparse.Namespace) -> int:
    """Delete a user and restock their purchases."""
    try:
        with get_dashboard() as dashboard:
            dashboard.users.delete_user(args.user_id)

        print(f"Deleted user: {args.user_id}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_users_set_active(args: argparse.Namespace) -> int:
    """Activate or deactivate a user."""
    active = args.users_command == "activate"
    try:
        with get_dashboard() as dashboard:
            user = dashboard.users.set_active(args.user_id, active)

        print(f"User {user.id} {'activated' if active else 'deactivated'}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_users_remove_purchase(args: argparse.Namespace) -> int:
    """Remove units from a user's purchase history."""
    try:
        with get_dashboard() as dashboard:
            user = dashboard.users.remove_purchase_line(
                RemovePurchaseLine(
                    user_id=args.user_id,
                    product_id=args.product_id,
                    quantity=args.quantity,
                )
            )

        unit = "units" if args.quantity > 1 else "unit"
        print(f"Removed {args.quantity} {unit} of {args.product_id} from {user.id}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_products_list(args: argparse.Namespace) -> int:
    """List products."""
    try:
        with get_dashboard() as dashboard:
            products = dashboard.catalog.fetch_products()
            if args.zip:
                products = dashboard.catalog.products_near(args.zip)

        if not products:
            print("No products found.")
            return 0

        if args.json:
            print(json.dumps([p.to_dict() for p in products], indent=2))
        else:
            print(f"Products ({len(products)}):")
            for product in products:
                print(format_product(product))
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_products_add(args: argparse.Namespace) -> int:
    """Add a product."""
    try:
        images = [load_image(path) for path in args.image or []]
        images.extend(args.image_url or [])
        product = Product.create(
            title=args.title,
            price=args.price,
            quantity=args.quantity,
            images=images,
            description=args.desc,
            address1=args.address1 or "",
            address2=args.address2 or "",
            city=args.city or "",
            state=args.state or "",
            zip=args.zip or "",
            country=args.country or "",
        )
        with get_dashboard() as dashboard:
            saved = dashboard.catalog.add_product(product)

        print(f"Added product: {saved.id}")
        print(f"  {format_product(saved)}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_products_delete(args: argparse.Namespace) -> int:
    """Delete a product."""
    try:
        with get_dashboard() as dashboard:
            dashboard.catalog.delete_product(args.product_id)

        print(f"Deleted product: {args.product_id}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_buy(args: argparse.Namespace) -> int:
    """Buy a product on behalf of a user."""
    try:
        with get_dashboard() as dashboard:
            dashboard.refresh()
            receipt = dashboard.purchases.purchase(
                args.user_id, args.zip, args.product_id, args.quantity
            )

        buyer = receipt.user.full_name or receipt.user.email
        print(f'{buyer} purchased {receipt.quantity} x "{receipt.product.title}" successfully!')
        print(f"  Total: {format_money(receipt.total)}")
        print(f"  Remaining stock: {receipt.product.quantity}")
        return 0

    except ShopdeskError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def cmd_serve(args: argparse.Namespace) -> int:
    """Start the API server."""
    try:
        import uvicorn

        settings = Settings.from_env()
        print("Starting shopdesk API server...")
        print(f"Resource store: {settings.api_url}")
        print(f"API docs: http://{args.host}:{args.port}/docs")
        print()

        # When reload is enabled, uvicorn requires the app as an import string
        app_target = "shopdesk.api:app" if args.reload else None
        if app_target is None:
            from .api import app
            app_target = app

        uvicorn.run(
            app_target,
            host=args.host,
            port=args.port,
            reload=args.reload,
            workers=1,  # cart and session live in process memory
        )
        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _add_address_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--address1", help="Address line 1")
    parser.add_argument("--address2", help="Address line 2")
    parser.add_argument("--city", help="City")
    parser.add_argument("--state", help="State")
    parser.add_argument("--zip", help="Postal / ZIP code")
    parser.add_argument("--country", help="Country")


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="shopdesk",
        description="Manage users, products and purchases against a REST resource store.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # signup
    signup_parser = subparsers.add_parser("signup", help="Register a new user")
    signup_parser.add_argument("--name", "-n", required=True, help="Full name")
    signup_parser.add_argument("--email", "-e", required=True, help="Email address")
    signup_parser.add_argument("--password", "-p", required=True, help="Password")
    signup_parser.add_argument("--phone", help="Phone number")
    signup_parser.add_argument("--gender", help="Gender")
    signup_parser.add_argument("--profile-image", help="Path to a JPG/PNG profile image")
    _add_address_arguments(signup_parser)

    # login / logout / whoami
    login_parser = subparsers.add_parser("login", help="Log in")
    login_parser.add_argument("email", help="Email address")
    login_parser.add_argument("password", help="Password")
    subparsers.add_parser("logout", help="Log out")
    subparsers.add_parser("whoami", help="Show the logged in user")

    # users (subcommand group)
    users_parser = subparsers.add_parser("users", help="Manage users")
    users_subparsers = users_parser.add_subparsers(dest="users_command")

    users_list_parser = users_subparsers.add_parser("list", help="List users")
    users_list_parser.add_argument("--search", "-s", help="Filter by name, email, phone, gender or address")
    users_list_parser.add_argument("--json", action="store_true", help="Output as JSON")
    users_list_parser.add_argument(
        "--long", "-l", action="store_true", help="Show address and purchases"
    )

    users_delete_parser = users_subparsers.add_parser("delete", help="Delete a user")
    users_delete_parser.add_argument("user_id", help="User ID")

    for name, help_text in (("activate", "Activate a user"), ("deactivate", "Deactivate a user")):
        toggle_parser = users_subparsers.add_parser(name, help=help_text)
        toggle_parser.add_argument("user_id", help="User ID")

    remove_purchase_parser = users_subparsers.add_parser(
        "remove-purchase", help="Remove units from a user's purchases and restock them"
    )
    remove_purchase_parser.add_argument("user_id", help="User ID")
    remove_purchase_parser.add_argument("product_id", help="Product ID")
    remove_purchase_parser.add_argument(
        "--quantity", "-q", type=int, default=1, help="Units to remove (default: 1)"
    )

    # products (subcommand group)
    products_parser = subparsers.add_parser("products", help="Manage products")
    products_subparsers = products_parser.add_subparsers(dest="products_command")

    products_list_parser = products_subparsers.add_parser("list", help="List products")
    products_list_parser.add_argument("--zip", "-z", help="Only products available at this postal code")
    products_list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    products_add_parser = products_subparsers.add_parser("add", help="Add a product")
    products_add_parser.add_argument("title", help="Product title")
    products_add_parser.add_argument("--price", type=float, required=True, help="Unit price")
    products_add_parser.add_argument("--quantity", "-q", type=int, required=True, help="Units in stock")
    products_add_parser.add_argument("--desc", "-d", help="Description")
    products_add_parser.add_argument(
        "--image", "-i", action="append", help="Path to an image file (repeatable)"
    )
    products_add_parser.add_argument(
        "--image-url", action="append", help="Image URL (repeatable)"
    )
    _add_address_arguments(products_add_parser)

    products_delete_parser = products_subparsers.add_parser("delete", help="Delete a product")
    products_delete_parser.add_argument("product_id", help="Product ID")

    # buy
    buy_parser = subparsers.add_parser("buy", help="Buy a product for a user")
    buy_parser.add_argument("user_id", help="Buyer user ID")
    buy_parser.add_argument("product_id", help="Product ID")
    buy_parser.add_argument("--zip", "-z", required=True, help="Buyer postal code")
    buy_parser.add_argument(
        "--quantity", "-q", type=int, default=1, help="Units to buy (default: 1)"
    )

    # serve
    serve_parser = subparsers.add_parser("serve", help="Start the API server")
    serve_parser.add_argument(
        "--host", default="127.0.0.1", help="Host to bind to (default: 127.0.0.1)"
    )
    serve_parser.add_argument(
        "--port", "-p", type=int, default=8000, help="Port to bind to (default: 8000)"
    )
    serve_parser.add_argument(
        "--reload", action="store_true", help="Enable auto-reload for development"
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    configure_logging(args.verbose)

    # Handle users subcommands
    if args.command == "users":
        users_commands = {
            "list": cmd_users_list,
            "delete": cmd_users_delete,
            "activate": cmd_users_set_active,
            "deactivate": cmd_users_set_active,
            "remove-purchase": cmd_users_remove_purchase,
        }
        cmd_func = users_commands.get(args.users_command or "")
        if cmd_func is None:
            parser.parse_args(["users", "--help"])
            return 0
        return cmd_func(args)

    # Handle products subcommands
    if args.command == "products":
        products_commands = {
            "list": cmd_products_list,
            "add": cmd_products_add,
            "delete": cmd_products_delete,
        }
        cmd_func = products_commands.get(args.products_command or "")
        if cmd_func is None:
            parser.parse_args(["products", "--help"])
            return 0
        return cmd_func(args)

    commands = {
        "signup": cmd_signup,
        "login": cmd_login,
        "logout": cmd_logout,
        "whoami": cmd_whoami,
        "buy": cmd_buy,
        "serve": cmd_serve,
    }

    cmd_func = commands.get(args.command)
    if cmd_func:
        return cmd_func(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
