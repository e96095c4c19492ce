from decimal import Decimal

import pytest

from packages.statement_ingestion.amounts import parse_amount
from packages.statement_ingestion.csv_parser import (
    EMPTY_FILE_ERROR,
    GENERIC_FORMAT,
    CsvRow,
    detect_bank_format,
    detect_delimiter,
    parse_csv,
)


def test_detect_delimiter_prefers_semicolon():
    """Three semicolons beat a single comma in the header line."""
    assert detect_delimiter("Date;Libellé;Débit,EUR;Crédit\n01/01/2024;x;1;2") == ";"


def test_detect_delimiter_tab_and_default():
    assert detect_delimiter("Date\tLabel\tAmount") == "\t"
    assert detect_delimiter("Date,Label,Amount") == ","
    assert detect_delimiter("single") == ","


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("12,50", Decimal("12.50")),
        ("-1 234,56", Decimal("-1234.56")),
        ("1.234,56 €", Decimal("1234.56")),
        ("42.10", Decimal("42.10")),
        ("", Decimal("0")),
        ("abc", Decimal("0")),
        (None, Decimal("0")),
    ],
)
def test_parse_amount_french_notation(raw, expected):
    assert parse_amount(raw) == expected


def test_debit_column_yields_negative_amount():
    """
    A BNP-style row with only a debit is an expense; with only a credit
    it is income.
    """
    content = (
        "Date;Libellé;Débit;Crédit\n"
        "15/01/2024;PRLV SEPA NETFLIX;12,50;\n"
        "16/01/2024;VIREMENT SALAIRE;;12,50\n"
    )

    result = parse_csv(content)

    assert result.format_label == "BNP Paribas"
    assert result.errors == []
    assert [tx.amount for tx in result.transactions] == [Decimal("-12.50"), Decimal("12.50")]
    assert result.transactions[0].date == "15/01/2024"
    assert result.transactions[0].description == "PRLV SEPA NETFLIX"


def test_trailing_delimiters_keep_columns_aligned():
    """Data rows ending in ";;" under a header without them still map by column name."""
    content = (
        "Date;Libellé;Débit;Crédit\n"
        "15/01/2024;PRLV NETFLIX;13,99;;\n"
        "16/01/2024;CARREFOUR;42,10;;\n"
    )

    result = parse_csv(content)

    assert result.format_label == "BNP Paribas"
    assert result.errors == []
    assert [(tx.date, tx.description, tx.amount) for tx in result.transactions] == [
        ("15/01/2024", "PRLV NETFLIX", Decimal("-13.99")),
        ("16/01/2024", "CARREFOUR", Decimal("-42.10")),
    ]


def test_credit_agricole_single_amount_column():
    content = "Date;Libellé;Montant\n15/01/2024;NETFLIX.COM;-13,99\n"

    result = parse_csv(content)

    assert result.format_label == "Crédit Agricole"
    assert result.transactions[0].amount == Decimal("-13.99")


def test_n26_comma_separated_export():
    content = (
        "Date,Payee,Account number,Transaction type,Payment reference,Amount (EUR)\n"
        "2024-01-15,Spotify AB,,MasterCard Payment,,-9.99\n"
    )

    result = parse_csv(content)

    assert result.format_label == "N26"
    assert result.transactions[0].description == "Spotify AB"
    assert result.transactions[0].amount == Decimal("-9.99")


def test_detect_bank_format_is_case_insensitive():
    assert detect_bank_format(["DateOp", "Label", "Amount"]).name == "Boursorama"
    assert detect_bank_format(["Date de l'opération", "Montant"]).name == "Société Générale"
    assert detect_bank_format(["foo", "bar"]) is None


def test_generic_format_guesses_columns():
    content = "Booking date,Description,Amount\n2024-02-01,Coffee shop,-3.20\n"

    result = parse_csv(content)

    assert result.format_label == GENERIC_FORMAT
    tx = result.transactions[0]
    assert (tx.date, tx.description, tx.amount) == ("2024-02-01", "Coffee shop", Decimal("-3.20"))


def test_row_missing_description_is_reported_and_skipped():
    content = (
        "Date;Libellé;Montant\n"
        "15/01/2024;NETFLIX.COM;-13,99\n"
        "16/01/2024;;-5,00\n"
        "17/01/2024;SPOTIFY;-9,99\n"
    )

    result = parse_csv(content)

    assert len(result.transactions) == 2
    assert result.errors == ["Line 3: missing date or description"]


@pytest.mark.parametrize("content", ["", "Date\n01/01/2024\n", "Date;Libellé;Montant\n"])
def test_empty_or_unrecognised_file(content):
    result = parse_csv(content)

    assert result.transactions == []
    assert EMPTY_FILE_ERROR in result.errors


def test_csv_row_lookup_returns_first_non_blank():
    row = CsvRow({"Libellé ": "", "Libelle": "CARREFOUR"})
    assert row.get("Libellé", "Libelle") == "CARREFOUR"
    assert row.get("missing") == ""
