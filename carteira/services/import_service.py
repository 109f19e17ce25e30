import csv
import hashlib
import io
import logging
import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

import yaml
from django.db import transaction
from django.utils import timezone

from carteira.finance.models import Category, ImportBatch, Transaction
from carteira.finance.repos import DjangoAccountsRepo, DjangoTransactionsRepo, NotFoundError, ValidationError
from carteira.services.balances import apply_balance_effect

logger = logging.getLogger(__name__)

IMPORT_TAG = "importado"
RULE_CATEGORY_ICON = "Tag"


def _compute_hash(file_bytes: bytes, rules_bytes: Optional[bytes]) -> str:
    h = hashlib.sha256()
    h.update(file_bytes)
    if rules_bytes:
        h.update(b"::RULES::")
        h.update(rules_bytes)
    return h.hexdigest()


def row_digest(account_id, tx_date, amount: Decimal, description: str) -> str:
    key = f"{account_id}|{tx_date.isoformat()}|{amount:.2f}|{description.strip().lower()}"
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def _parse_amount(s: str) -> Decimal:
    if s is None:
        raise ValueError("Amount missing")
    s = str(s).strip().replace("R$", "").replace(" ", "")
    if s.startswith("(") and s.endswith(")"):
        s = "-" + s[1:-1]
    # 1.234,56 -> 1234.56 ; 1,234.56 -> 1234.56
    if "," in s and s.rfind(",") > s.rfind("."):
        s = s.replace(".", "").replace(",", ".")
    else:
        s = s.replace(",", "")
    try:
        return Decimal(s).quantize(Decimal("0.01"))
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {s}") from e


def _parse_date(s: str):
    s = (s or "").strip()
    if not s:
        return None
    fmts = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y", "%d/%m/%y")
    for f in fmts:
        try:
            return datetime.strptime(s, f).date()
        except ValueError:
            continue
    try:
        return datetime.fromisoformat(s).date()
    except ValueError:
        return None


def _load_rules_from_yaml_bytes(b: bytes) -> List[Dict[str, Any]]:
    if not b:
        return []
    try:
        parsed = yaml.safe_load(b.decode("utf-8"))
    except yaml.YAMLError as e:
        raise ValidationError(f"Invalid rules file: {e}") from e
    if parsed is None:
        return []
    if isinstance(parsed, dict):
        parsed = parsed.get("rules", [])
    if not isinstance(parsed, list):
        raise ValidationError("Rules file must contain a list of rules")
    return parsed


def _match_rule(text: str, rules_list: List[Dict[str, Any]]):
    txt = (text or "").lower()
    for r in rules_list:
        mt = r.get("matcher_type", "keyword")
        matcher = r.get("matcher")
        if not matcher:
            continue
        if mt == "keyword":
            for kw in [k.strip() for k in str(matcher).split(",") if k.strip()]:
                if kw.lower() in txt:
                    return r
        elif mt == "regex":
            try:
                if re.search(matcher, text or "", flags=re.IGNORECASE):
                    return r
            except re.error:
                logger.warning("Skipping invalid regex rule %r", matcher)
                continue
    return None


def _pick(row: Dict[str, str], *candidates):
    low_keys = {(k or "").strip().lower(): k for k in row.keys()}
    for candidate in candidates:
        if candidate in low_keys:
            return row.get(low_keys[candidate])
    return None


class CSVImportResult:
    def __init__(self, created_count: int, skipped: bool, batch: Optional[ImportBatch], errors: List[str],
                 duplicate_count: int = 0, transactions: Optional[List[Transaction]] = None):
        self.created_count = created_count
        self.skipped = skipped
        self.batch = batch
        self.errors = errors
        self.duplicate_count = duplicate_count
        self.transactions = transactions or []


class ImportService:
    def __init__(self, accounts_repo: DjangoAccountsRepo, tx_repo: DjangoTransactionsRepo):
        self.accounts_repo = accounts_repo
        self.tx_repo = tx_repo
        self.user = tx_repo.user

    def _category_for(self, rule, tx_type, cache):
        name = str(rule.get("category") or "").strip()
        if not name:
            return None
        key = (name.lower(), tx_type)
        if key not in cache:
            category = Category.objects.filter(user=self.user, name__iexact=name).first()
            if category is None:
                category = Category.objects.create(
                    user=self.user, name=name, type=tx_type,
                    color=rule.get("color") or "gray", icon=RULE_CATEGORY_ICON,
                )
                logger.info("Import created category %s (%s)", name, tx_type)
            elif category.type != tx_type:
                category = None
            cache[key] = category
        return cache[key]

    def import_csv(self, fileobj, rules_fileobj=None, account_id=None, force: bool = False) -> CSVImportResult:
        """Import a bank statement CSV into ``account_id``.

        fileobj: file-like opened in binary mode (uploaded file .read() gives bytes)
        rules_fileobj: optional YAML with ``matcher``/``matcher_type``/``category`` rules
        force: re-run a file that was already imported (row duplicates are still skipped)
        """
        account = self.accounts_repo.get(account_id) if account_id else None
        if account is None:
            raise NotFoundError("Account not found")

        file_bytes = fileobj.read()
        rules_bytes = rules_fileobj.read() if rules_fileobj else None
        file_hash = _compute_hash(file_bytes, rules_bytes)

        existing = ImportBatch.objects.filter(user=self.user, file_hash=file_hash).first()
        if existing:
            if existing.processed_records > 0 and not force:
                return CSVImportResult(created_count=existing.processed_records, skipped=True, batch=existing,
                                       errors=list(existing.errors or []),
                                       duplicate_count=existing.duplicate_records)
            existing.delete()

        rules_list = _load_rules_from_yaml_bytes(rules_bytes)
        batch = ImportBatch.objects.create(
            user=self.user, account=account, file_name=getattr(fileobj, "name", None),
            file_hash=file_hash, status="processing", started_at=timezone.now(),
        )

        text = file_bytes.decode("utf-8-sig", errors="replace")
        reader = csv.DictReader(io.StringIO(text))

        created, duplicates, total = [], 0, 0
        errors = []
        categories = {}

        for idx, row in enumerate(reader, start=1):
            total += 1
            try:
                raw_amount = _pick(row, "amount", "valor", "value", "amt", "transaction amount")
                if raw_amount is None:
                    raise ValueError("No amount column found")
                amount = _parse_amount(raw_amount)
                if amount == 0:
                    raise ValueError("Amount cannot be zero")

                raw_date = _pick(row, "date", "data", "transaction date")
                tx_date = _parse_date(raw_date) if raw_date is not None else timezone.localdate()
                if tx_date is None:
                    raise ValueError(f"Invalid date: {raw_date}")

                description = " ".join(
                    str(v).strip() for v in (_pick(row, "payee", "merchant"), _pick(row, "description", "descricao", "desc", "memo")) if v
                ).strip() or "Transação importada"

                digest = row_digest(account.pk, tx_date, abs(amount), description)
                if self.tx_repo.exists_hash(digest):
                    duplicates += 1
                    continue

                tx_type = Transaction.TYPE_EXPENSE if amount < 0 else Transaction.TYPE_INCOME
                rule = _match_rule(description, rules_list)
                category = self._category_for(rule, tx_type, categories) if rule else None

                tags = [IMPORT_TAG]
                raw_tags = _pick(row, "tags", "tag")
                if raw_tags:
                    sep = "|" if "|" in raw_tags else ","
                    tags += [t.strip() for t in raw_tags.split(sep) if t.strip()]

                with transaction.atomic():
                    tx = self.tx_repo.create(
                        type=tx_type,
                        description=description[:255],
                        amount=abs(amount),
                        date=tx_date,
                        category=category,
                        account=account,
                        tags=tags,
                        import_batch=batch,
                        hash=digest,
                        metadata={"import_row": idx},
                    )
                    apply_balance_effect(tx)
                created.append(tx)
            except (ValueError, ValidationError) as e:
                logger.warning("Import row %s skipped: %s", idx, e)
                errors.append(f"row {idx}: {e}")

        batch.total_records = total
        batch.processed_records = len(created)
        batch.duplicate_records = duplicates
        batch.error_records = len(errors)
        batch.errors = errors
        batch.status = "completed" if created or not errors else "failed"
        batch.completed_at = timezone.now()
        batch.save()

        logger.info(
            "Import %s finished: %s created, %s duplicates, %s errors",
            batch.pk, len(created), duplicates, len(errors),
        )
        return CSVImportResult(created_count=len(created), skipped=False, batch=batch, errors=errors,
                               duplicate_count=duplicates, transactions=created)
