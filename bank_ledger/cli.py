"""
CLI interface for the bank ledger.

This module provides a command-line interface for customers to register,
log in, manage their accounts and move money, plus an admin command group.
"""

import logging

import click
from decimal import Decimal, InvalidOperation

from . import create_services
from .config import Settings
from .errors import AuthError, BankError, ConfigurationError, ValidationError
from .logging_config import setup_logging
from .models import Account, AccountType, Customer


class BankCLI:
    """CLI wrapper for bank operations."""

    def __init__(self, db_path: str = "bank.db", currency_symbol: str = "₹"):
        """Initialize CLI with database."""
        self.services = create_services(db_path)
        self.db_manager = self.services.db
        self.auth_manager = self.services.auth
        self.account_manager = self.services.accounts
        self.transaction_manager = self.services.transactions
        self.currency_symbol = currency_symbol

    def close(self):
        self.services.close()

    def format_currency(self, amount: Decimal) -> str:
        """Format currency for display."""
        if amount < 0:
            return f"-{self.currency_symbol}{-amount:,.2f}"
        return f"{self.currency_symbol}{amount:,.2f}"

    def parse_currency(self, amount_str: str) -> Decimal:
        """Parse currency input."""
        clean_str = amount_str.replace(self.currency_symbol, '').replace(',', '').strip()
        try:
            amount = Decimal(clean_str)
        except InvalidOperation:
            raise ValidationError(f"Invalid amount: {amount_str}")
        if not amount.is_finite():
            raise ValidationError(f"Invalid amount: {amount_str}")
        return amount

    def authenticate(self, username: str, password: str) -> Customer:
        return self.auth_manager.login(username, password)

    def owned_account(self, customer: Customer, account_number: str) -> Account:
        """Look up an account by number, refusing other customers' accounts."""
        account = self.account_manager.get_account_by_number(account_number.strip())
        if not self.account_manager.is_owned_by(account, customer.customer_id):
            raise AuthError("You don't have access to this account.")
        return account


def fail(error: Exception):
    """Report an error and exit with status 1."""
    click.echo(f"❌ Error: {error}", err=True)
    raise click.exceptions.Exit(1)


def credentials(f):
    """Add prompted --username/--password options to a command."""
    f = click.option('--password', prompt=True, hide_input=True, help='Password')(f)
    f = click.option('--username', prompt='Username', help='Username')(f)
    return f


@click.group()
@click.option('--db-path', default=None, help='Database file path')
@click.option('--log-level', default=None, help='Log level (DEBUG, INFO, WARNING, ERROR)')
@click.pass_context
def cli(ctx, db_path, log_level):
    """Bank Ledger CLI"""
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        raise click.ClickException(str(e))
    if db_path:
        settings.db_path = db_path
    if log_level:
        settings.log_level = log_level

    handler = setup_logging(settings.log_level, settings.log_format)
    ctx.call_on_close(lambda: logging.getLogger().removeHandler(handler))

    ctx.ensure_object(dict)
    try:
        bank_cli = BankCLI(settings.db_path, settings.currency_symbol)
    except BankError as e:
        fail(e)
    ctx.call_on_close(bank_cli.close)
    ctx.obj['cli'] = bank_cli
    ctx.obj['settings'] = settings


@cli.command()
@click.option('--first-name', prompt='First name', help='First name')
@click.option('--last-name', prompt='Last name', help='Last name')
@click.option('--email', prompt='Email', help='Email address')
@click.option('--phone', prompt='Phone (10 digits)', help='Phone number')
@click.option('--address', prompt='Address', help='Postal address')
@click.option('--username', prompt='Username', help='Username (3-20 letters, digits, _)')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True,
              help='Password')
@click.pass_context
def register(ctx, first_name, last_name, email, phone, address, username, password):
    """Register a new customer."""
    bank_cli = ctx.obj['cli']

    try:
        customer_id = bank_cli.auth_manager.register(
            first_name=first_name,
            last_name=last_name,
            email=email,
            phone=phone,
            address=address,
            username=username,
            password=password,
        )
        click.echo("✅ Registration successful!")
        click.echo(f"Customer ID: {customer_id}")
        click.echo(f"Username: {username}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.pass_context
def login(ctx, username, password):
    """Verify credentials and show a welcome summary."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        summary = bank_cli.account_manager.get_customer_summary(customer.customer_id)
        click.echo(f"✅ Welcome, {customer.full_name}!")
        click.echo(f"Active accounts: {summary['active_accounts']}")
        click.echo(f"Total balance: {bank_cli.format_currency(summary['total_balance'])}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.pass_context
def profile(ctx, username, password):
    """Show your profile."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        click.echo(f"\n👤 Your Profile")
        click.echo(f"{'='*45}")
        click.echo(f"Customer ID: {customer.customer_id}")
        click.echo(f"Name: {customer.full_name}")
        click.echo(f"Email: {customer.email}")
        click.echo(f"Phone: {customer.phone}")
        click.echo(f"Address: {customer.address}")
        click.echo(f"Username: {customer.username}")
        click.echo(f"Member Since: {customer.created_at.strftime('%Y-%m-%d %H:%M:%S')}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--first-name', default=None, help='New first name')
@click.option('--last-name', default=None, help='New last name')
@click.option('--email', default=None, help='New email address')
@click.option('--phone', default=None, help='New phone number')
@click.option('--address', default=None, help='New address')
@click.pass_context
def update_profile(ctx, username, password, first_name, last_name, email, phone, address):
    """Update profile fields; omitted fields keep their value."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        updated = bank_cli.auth_manager.update_profile(
            customer.customer_id,
            first_name=first_name if first_name is not None else customer.first_name,
            last_name=last_name if last_name is not None else customer.last_name,
            email=email if email is not None else customer.email,
            phone=phone if phone is not None else customer.phone,
            address=address if address is not None else customer.address,
        )
        click.echo("✅ Profile updated!")
        click.echo(f"Name: {updated.full_name}")
        click.echo(f"Email: {updated.email}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--new-password', prompt=True, hide_input=True, confirmation_prompt=True,
              help='New password')
@click.pass_context
def change_password(ctx, username, password, new_password):
    """Change your password."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        bank_cli.auth_manager.change_password(customer.customer_id, password, new_password)
        click.echo("✅ Password changed successfully!")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--type', 'account_type',
              type=click.Choice([t.value for t in AccountType], case_sensitive=False),
              prompt='Account type', help='Type of account')
@click.option('--initial-deposit', default='0.00',
              prompt='Initial deposit', help='Initial deposit amount')
@click.pass_context
def open_account(ctx, username, password, account_type, initial_deposit):
    """Open a new account."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        initial_amount = bank_cli.parse_currency(initial_deposit)

        account = bank_cli.account_manager.open_account(
            customer.customer_id,
            AccountType(account_type.upper()),
            initial_amount,
        )

        click.echo("✅ Account opened successfully!")
        click.echo(f"Account Number: {account.account_number}")
        click.echo(f"Type: {account.account_type.value}")
        click.echo(f"Balance: {bank_cli.format_currency(account.balance)}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.pass_context
def list_accounts(ctx, username, password):
    """List your accounts."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        accounts = bank_cli.account_manager.get_accounts_by_customer_id(customer.customer_id)

        if not accounts:
            click.echo("📭 You have no accounts yet.")
            return

        click.echo(f"\n{'Account Number':<15} {'Type':<20} {'Balance':>18} {'Status':<10}")
        click.echo(f"{'-'*66}")
        for account in accounts:
            click.echo(
                f"{account.account_number:<15} "
                f"{account.account_type.value:<20} "
                f"{bank_cli.format_currency(account.balance):>18} "
                f"{account.status.value:<10}"
            )

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--account-number', prompt='Account number', help='Account number')
@click.pass_context
def show_account(ctx, username, password, account_number):
    """Show account details and recent transactions."""
    bank_cli = ctx.obj['cli']
    settings = ctx.obj['settings']

    try:
        customer = bank_cli.authenticate(username, password)
        account = bank_cli.owned_account(customer, account_number)
        summary = bank_cli.account_manager.get_account_summary(account.account_id)
        recent = bank_cli.transaction_manager.get_recent_transactions(
            account.account_id, settings.history_limit
        )

        click.echo(f"\n📊 Account Details")
        click.echo(f"{'='*50}")
        click.echo(f"Account ID: {account.account_id}")
        click.echo(f"Account Number: {account.account_number}")
        click.echo(f"Type: {account.account_type.value}")
        click.echo(f"Balance: {bank_cli.format_currency(account.balance)}")
        click.echo(f"Status: {account.status.value}")
        click.echo(f"Created: {account.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
        click.echo(f"\n💰 Transaction Summary")
        click.echo(f"Transactions: {summary['transaction_count']}")
        click.echo(f"Total Credits: {bank_cli.format_currency(summary['total_credits'])}")
        click.echo(f"Total Debits: {bank_cli.format_currency(summary['total_debits'])}")

        if recent:
            click.echo(f"\n📋 Recent Transactions")
            _print_transactions(bank_cli, recent)

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--account-number', prompt='Account number', help='Account number')
@click.option('--yes', is_flag=True, help='Skip the confirmation prompt')
@click.pass_context
def close_account(ctx, username, password, account_number, yes):
    """Close one of your accounts (balance must be zero)."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        account = bank_cli.owned_account(customer, account_number)

        if not yes and not click.confirm("Are you sure you want to close this account?"):
            click.echo("Account closure cancelled.")
            return

        bank_cli.account_manager.close_account(account.account_id)
        click.echo(f"✅ Account {account.account_number} closed successfully!")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--account-number', prompt='Account number', help='Account number')
@click.option('--amount', prompt='Deposit amount', help='Amount to deposit')
@click.option('--description', default='', help='Transaction description')
@click.pass_context
def deposit(ctx, username, password, account_number, amount, description):
    """Deposit money to an account."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        account = bank_cli.owned_account(customer, account_number)
        deposit_amount = bank_cli.parse_currency(amount)

        txn = bank_cli.transaction_manager.deposit(account.account_id, deposit_amount, description)
        click.echo("✅ Deposit successful!")
        click.echo(f"Amount: {bank_cli.format_currency(txn.amount)}")
        click.echo(f"New Balance: {bank_cli.format_currency(txn.balance_after)}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--account-number', prompt='Account number', help='Account number')
@click.option('--amount', prompt='Withdrawal amount', help='Amount to withdraw')
@click.option('--description', default='', help='Transaction description')
@click.pass_context
def withdraw(ctx, username, password, account_number, amount, description):
    """Withdraw money from an account."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        account = bank_cli.owned_account(customer, account_number)
        withdraw_amount = bank_cli.parse_currency(amount)

        txn = bank_cli.transaction_manager.withdraw(account.account_id, withdraw_amount, description)
        click.echo("✅ Withdrawal successful!")
        click.echo(f"Amount: {bank_cli.format_currency(txn.amount)}")
        click.echo(f"New Balance: {bank_cli.format_currency(txn.balance_after)}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--from-account', prompt='Source account number', help='Source account number')
@click.option('--to-account', prompt='Destination account number',
              help='Destination account number')
@click.option('--amount', prompt='Transfer amount', help='Amount to transfer')
@click.pass_context
def transfer(ctx, username, password, from_account, to_account, amount):
    """Transfer money from one of your accounts to any account."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        source = bank_cli.owned_account(customer, from_account)
        destination = bank_cli.account_manager.get_account_by_number(to_account.strip())
        transfer_amount = bank_cli.parse_currency(amount)

        out_txn, _ = bank_cli.transaction_manager.transfer(
            source.account_id, destination.account_id, transfer_amount
        )

        click.echo("✅ Transfer successful!")
        click.echo(f"Amount: {bank_cli.format_currency(out_txn.amount)}")
        click.echo(f"From: {source.account_number}")
        click.echo(f"To: {destination.account_number}")
        click.echo(f"New Balance: {bank_cli.format_currency(out_txn.balance_after)}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--account-number', prompt='Account number', help='Account number')
@click.pass_context
def balance(ctx, username, password, account_number):
    """Check account balance."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        account = bank_cli.owned_account(customer, account_number)
        current = bank_cli.transaction_manager.check_balance(account.account_id)

        click.echo(f"\n💰 Account Balance")
        click.echo(f"Account: {account.account_number}")
        click.echo(f"Current Balance: {bank_cli.format_currency(current)}")

    except BankError as e:
        fail(e)


@cli.command()
@credentials
@click.option('--account-number', prompt='Account number', help='Account number')
@click.option('--start', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='First day to include (YYYY-MM-DD)')
@click.option('--end', type=click.DateTime(formats=['%Y-%m-%d']), default=None,
              help='Last day to include (YYYY-MM-DD)')
@click.option('--limit', type=click.IntRange(min=1), default=None,
              help='Show at most this many transactions')
@click.pass_context
def history(ctx, username, password, account_number, start, end, limit):
    """Show transaction history, newest first."""
    bank_cli = ctx.obj['cli']

    try:
        customer = bank_cli.authenticate(username, password)
        account = bank_cli.owned_account(customer, account_number)
        manager = bank_cli.transaction_manager

        if start is None and end is None and limit is not None:
            transactions = manager.get_recent_transactions(account.account_id, limit)
        else:
            transactions = manager.get_transaction_history(
                account.account_id,
                start.date() if start else None,
                end.date() if end else None,
            )
            if limit is not None:
                transactions = transactions[:limit]

        if not transactions:
            click.echo("📭 No transactions found for this account.")
            return

        click.echo(f"\n📋 Transaction History - {account.account_number}")
        _print_transactions(bank_cli, transactions)

    except BankError as e:
        fail(e)


def _print_transactions(bank_cli: BankCLI, transactions):
    click.echo(f"{'ID':<8} {'Type':<13} {'Amount':>15} {'Balance':>15}  {'Date':<17} {'Description'}")
    click.echo(f"{'-'*95}")
    for txn in transactions:
        click.echo(
            f"{txn.transaction_id:<8} "
            f"{txn.transaction_type.value:<13} "
            f"{bank_cli.format_currency(txn.amount):>15} "
            f"{bank_cli.format_currency(txn.balance_after):>15}  "
            f"{txn.timestamp.strftime('%Y-%m-%d %H:%M'):<17} "
            f"{txn.description}"
        )


@cli.group()
def admin():
    """Administrative commands."""


def _admin_account(bank_cli: BankCLI, account_number: str) -> Account:
    return bank_cli.account_manager.get_account_by_number(account_number.strip())


@admin.command()
@click.option('--account-number', prompt='Account number', help='Account number')
@click.pass_context
def suspend(ctx, account_number):
    """Suspend an account."""
    bank_cli = ctx.obj['cli']

    try:
        account = _admin_account(bank_cli, account_number)
        bank_cli.account_manager.suspend_account(account.account_id)
        click.echo(f"✅ Account {account.account_number} suspended")

    except BankError as e:
        fail(e)


@admin.command()
@click.option('--account-number', prompt='Account number', help='Account number')
@click.pass_context
def activate(ctx, account_number):
    """Activate an account."""
    bank_cli = ctx.obj['cli']

    try:
        account = _admin_account(bank_cli, account_number)
        bank_cli.account_manager.activate_account(account.account_id)
        click.echo(f"✅ Account {account.account_number} activated")

    except BankError as e:
        fail(e)


@admin.command()
@click.option('--account-number', prompt='Account number', help='Account number')
@click.confirmation_option(prompt='Delete the account and all of its transactions?')
@click.pass_context
def delete(ctx, account_number):
    """Permanently delete an empty account and its history."""
    bank_cli = ctx.obj['cli']

    try:
        account = _admin_account(bank_cli, account_number)
        bank_cli.account_manager.delete_account(account.account_id)
        click.echo(f"✅ Account {account.account_number} deleted")

    except BankError as e:
        fail(e)


@admin.command('list-accounts')
@click.pass_context
def admin_list_accounts(ctx):
    """List every account."""
    bank_cli = ctx.obj['cli']

    try:
        accounts = bank_cli.account_manager.get_all_accounts()
        if not accounts:
            click.echo("📭 No accounts found.")
            return

        click.echo(f"\n{'ID':<6} {'Customer':<9} {'Account Number':<15} {'Type':<20} {'Balance':>18} {'Status'}")
        click.echo(f"{'-'*80}")
        for account in accounts:
            click.echo(
                f"{account.account_id:<6} "
                f"{account.customer_id:<9} "
                f"{account.account_number:<15} "
                f"{account.account_type.value:<20} "
                f"{bank_cli.format_currency(account.balance):>18} "
                f"{account.status.value}"
            )

    except BankError as e:
        fail(e)


@admin.command('list-customers')
@click.pass_context
def admin_list_customers(ctx):
    """List every customer."""
    bank_cli = ctx.obj['cli']

    try:
        customers = bank_cli.auth_manager.list_customers()
        if not customers:
            click.echo("📭 No customers found.")
            return

        click.echo(f"\n{'ID':<6} {'Username':<21} {'Name':<30} {'Email'}")
        click.echo(f"{'-'*80}")
        for customer in customers:
            click.echo(
                f"{customer.customer_id:<6} "
                f"{customer.username:<21} "
                f"{customer.full_name:<30} "
                f"{customer.email}"
            )

    except BankError as e:
        fail(e)


def main():
    """Main entry point for CLI."""
    cli(prog_name='bank-ledger')


if __name__ == '__main__':
    main()
