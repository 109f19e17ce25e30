from django.db import migrations

BANKS = [
    ("001", "Banco do Brasil", "Banco do Brasil S.A.", "https://bb.com.br"),
    ("104", "Caixa Econômica", "Caixa Econômica Federal", "https://caixa.gov.br"),
    ("237", "Bradesco", "Banco Bradesco S.A.", "https://bradesco.com.br"),
    ("341", "Itaú", "Itaú Unibanco S.A.", "https://itau.com.br"),
    ("033", "Santander", "Banco Santander Brasil S.A.", "https://santander.com.br"),
    ("260", "Nu Pagamentos", "Nu Pagamentos S.A.", "https://nubank.com.br"),
    ("077", "Inter", "Banco Inter S.A.", "https://bancointer.com.br"),
    ("212", "Original", "Banco Original S.A.", "https://original.com.br"),
]


def seed_banks(apps, schema_editor):
    Bank = apps.get_model("finance", "Bank")
    for code, name, full_name, website in BANKS:
        Bank.objects.get_or_create(
            code=code,
            defaults={"name": name, "full_name": full_name, "website": website},
        )


def unseed_banks(apps, schema_editor):
    Bank = apps.get_model("finance", "Bank")
    Bank.objects.filter(code__in=[b[0] for b in BANKS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("finance", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_banks, unseed_banks),
    ]
