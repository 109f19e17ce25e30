import csv
from io import StringIO
from typing import Iterable, Iterator

from carteira.finance.models import Transaction
from carteira.services.formatting import format_brl, format_date_br

TYPE_LABELS = {
    Transaction.TYPE_INCOME: "Receita",
    Transaction.TYPE_EXPENSE: "Despesa",
    Transaction.TYPE_TRANSFER: "Transferência",
    Transaction.TYPE_BILL_PAYMENT: "Pagamento de fatura",
}
NO_CATEGORY = "Sem Categoria"


def _source(tx: Transaction) -> str:
    if tx.credit_card_id and tx.type == Transaction.TYPE_EXPENSE:
        return tx.credit_card.name
    if tx.type == Transaction.TYPE_TRANSFER and tx.destination_account_id:
        return f"{tx.account.name} -> {tx.destination_account.name}"
    return tx.account.name if tx.account_id else ""


def _category(tx: Transaction) -> str:
    return tx.category.name if tx.category_id else NO_CATEGORY


class ReportExporter:
    def generate_csv(self, transactions: Iterable[Transaction]) -> Iterator[str]:
        output = StringIO()
        writer = csv.writer(output)

        # Write header
        writer.writerow(['Date', 'Type', 'Description', 'Category', 'Account', 'Amount', 'Status', 'Tags'])
        yield output.getvalue()
        output.seek(0)
        output.truncate()

        # Stream transaction data
        for tx in transactions:
            writer.writerow([
                tx.date.strftime('%Y-%m-%d'),
                tx.type,
                tx.description,
                _category(tx),
                _source(tx),
                f"{tx.amount:.2f}",
                tx.status,
                ','.join(tx.tags or []),
            ])
            yield output.getvalue()
            output.seek(0)
            output.truncate()

    def generate_markdown(self, transactions: Iterable[Transaction]) -> Iterator[str]:
        # Header
        yield "# Relatório de transações\n\n"
        yield "| Data | Tipo | Descrição | Categoria | Conta | Valor |\n"
        yield "|------|------|-----------|-----------|-------|-------|\n"

        for tx in transactions:
            description = tx.description.replace("|", "\\|")
            yield f"| {format_date_br(tx.date)} | {TYPE_LABELS.get(tx.type, tx.type)} | {description} | "
            yield f"{_category(tx)} | {_source(tx)} | {format_brl(tx.amount)} |\n"
