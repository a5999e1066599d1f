"""Static code lists used by the invoice model, the rule layers and the codec."""

from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType

NS_INVOICE = "urn:oasis:names:specification:ubl:schema:xsd:Invoice-2"
NS_CAC = "urn:oasis:names:specification:ubl:schema:xsd:CommonAggregateComponents-2"
NS_CBC = "urn:oasis:names:specification:ubl:schema:xsd:CommonBasicComponents-2"
NSMAP = {None: NS_INVOICE, "cac": NS_CAC, "cbc": NS_CBC}

CUSTOMIZATION_EN16931 = "urn:cen.eu:en16931:2017"
CUSTOMIZATION_PEPPOL = (
    "urn:cen.eu:en16931:2017#compliant#urn:fdc:peppol.eu:2017:poacc:billing:3.0"
)
CUSTOMIZATION_UBL_BE = "urn:cen.eu:en16931:2017#conformant#urn:UBL.BE:1.0.0.20180214"
PROFILE_PEPPOL = "urn:fdc:peppol.eu:2017:poacc:billing:01:1.0"

PROFILE_EN16931 = "en16931"
PROFILE_NAME_PEPPOL = "peppol"
PROFILE_UBL_BE = "ublbe"

# (CustomizationID, ProfileID) emitted for each profile.
PROFILE_IDENTIFIERS = MappingProxyType(
    {
        PROFILE_EN16931: (CUSTOMIZATION_EN16931, None),
        PROFILE_NAME_PEPPOL: (CUSTOMIZATION_PEPPOL, PROFILE_PEPPOL),
        PROFILE_UBL_BE: (CUSTOMIZATION_UBL_BE, PROFILE_PEPPOL),
    }
)

INVOICE_TYPE_CODES = MappingProxyType(
    {
        "380": "Commercial invoice",
        "381": "Credit note",
        "383": "Debit note",
        "384": "Corrected invoice",
        "386": "Prepayment invoice",
        "389": "Self-billed invoice",
    }
)

CURRENCY_CODES = frozenset(
    {
        "EUR", "USD", "GBP", "CHF", "CAD", "JPY", "AUD", "NZD", "SEK",
        "NOK", "DKK", "PLN", "CZK", "HUF", "RON", "BGN", "HRK",
    }
)

VAT_CATEGORIES = MappingProxyType(
    {
        "S": "Standard rate",
        "Z": "Zero rated goods",
        "E": "Exempt from tax",
        "AE": "VAT reverse charge",
        "K": "Intra-community supply",
        "G": "Export outside the EU",
        "O": "Services outside scope of tax",
        "L": "Canary Islands general indirect tax",
        "M": "Tax for production, services and importation in Ceuta and Melilla",
    }
)

# Categories whose VAT breakdown must carry an exemption reason.
EXEMPT_CATEGORIES = frozenset({"E", "AE", "K", "G", "O"})

# Categories whose rate must be zero.
ZERO_RATE_CATEGORIES = frozenset({"Z", "E", "G", "O"})

PAYMENT_MEANS_CODES = MappingProxyType(
    {
        "1": "Instrument not defined",
        "10": "In cash",
        "20": "Cheque",
        "30": "Credit transfer",
        "31": "Debit transfer",
        "42": "Payment to bank account",
        "48": "Bank card",
        "49": "Direct debit",
        "57": "Standing agreement",
        "58": "SEPA credit transfer",
        "59": "SEPA direct debit",
        "97": "Clearing between partners",
    }
)

# Payment means that require the payee account (BR-61).
TRANSFER_PAYMENT_MEANS = frozenset({"30", "58"})

VAT_EXEMPTION_REASONS = MappingProxyType(
    {
        "VATEX-EU-79-C": "Exempt based on article 79, point c of Council Directive 2006/112/EC",
        "VATEX-EU-132": "Exempt based on article 132 of Council Directive 2006/112/EC",
        "VATEX-EU-143": "Exempt based on article 143 of Council Directive 2006/112/EC",
        "VATEX-EU-148": "Exempt based on article 148 of Council Directive 2006/112/EC",
        "VATEX-EU-151": "Exempt based on article 151 of Council Directive 2006/112/EC",
        "VATEX-EU-309": "Exempt based on article 309 of Council Directive 2006/112/EC",
        "VATEX-EU-AE": "Reverse charge",
        "VATEX-EU-IC": "Intra-Community supply",
        "VATEX-EU-G": "Export outside the EU",
        "VATEX-EU-O": "Not subject to VAT",
        "VATEX-BE-SMALL": "Small business exemption (Belgium)",
    }
)

ELECTRONIC_ADDRESS_SCHEMES = MappingProxyType(
    {
        "0002": "System Information et Repertoire des Entreprise et des Etablissements (SIRENE)",
        "0007": "Organisationsnummer (Swedish legal entities)",
        "0009": "SIRET-CODE",
        "0037": "LY-tunnus",
        "0060": "Data Universal Numbering System (D-U-N-S)",
        "0088": "Global Location Number (GLN)",
        "0096": "DANISH CHAMBER OF COMMERCE Scheme",
        "0135": "SIA Object Identifiers",
        "0142": "SECETI Object Identifiers",
        "0184": "DIGSTORG",
        "0190": "Dutch Originator's Identification Number",
        "0191": "Centre of Registers and Information Systems of the Ministry of Justice",
        "0192": "Enhetsregisteret ved Bronnoysundregisterne",
        "0195": "Singapore UEN identifier",
        "0196": "Kennitala - Iceland legal id for individuals and legal entities",
        "0208": "Numero d'entreprise / ondernemingsnummer / Unternehmensnummer (Belgium)",
        "9925": "Belgium VAT number",
        "9956": "Belgian Crossroad Bank of Enterprises",
    }
)

BE_VAT_RATES = frozenset({Decimal("21"), Decimal("12"), Decimal("6"), Decimal("0")})

UNIT_CODES = MappingProxyType(
    {
        "C62": "One (unit)",
        "H87": "Piece",
        "HUR": "Hour",
        "DAY": "Day",
        "MON": "Month",
        "ANN": "Year",
        "MTR": "Metre",
        "KMT": "Kilometre",
        "MTK": "Square metre",
        "MTQ": "Cubic metre",
        "LTR": "Litre",
        "KGM": "Kilogram",
        "TNE": "Tonne",
        "GRM": "Gram",
        "MGM": "Milligram",
        "KWH": "Kilowatt hour",
        "MWH": "Megawatt hour",
        "SET": "Set",
        "MIN": "Minute",
        "SEC": "Second",
        "WEE": "Week",
        "BX": "Box",
        "PK": "Pack",
        "EA": "Each",
        "PR": "Pair",
        "DZN": "Dozen",
        "GLL": "Gallon",
        "ONZ": "Ounce",
        "LBR": "Pound",
        "FOT": "Foot",
        "INH": "Inch",
        "YRD": "Yard",
        "SMI": "Mile",
        "ZZ": "Mutually defined",
    }
)

ALLOWANCE_REASON_CODES = MappingProxyType(
    {
        "41": "Bonus for works ahead of schedule",
        "42": "Other bonus",
        "60": "Manufacturer's consumer discount",
        "62": "Due to military status",
        "63": "Due to work accident",
        "64": "Special agreement",
        "65": "Production error discount",
        "66": "New outlet discount",
        "67": "Sample discount",
        "68": "End-of-range discount",
        "70": "Incoterm discount",
        "71": "Point of sales threshold allowance",
        "88": "Material surcharge/deduction",
        "95": "Discount",
        "100": "Special rebate",
        "102": "Fixed long term",
        "103": "Temporary",
        "104": "Standard",
        "105": "Yearly turnover",
    }
)

CHARGE_REASON_CODES = MappingProxyType(
    {
        "AA": "Advertising",
        "AAA": "Telecommunication",
        "ABK": "Miscellaneous",
        "ABL": "Additional packaging",
        "ADR": "Other services",
        "ADZ": "Grouping",
        "AJ": "Adjustments",
        "CAB": "Cabling",
        "CAE": "Certification",
        "DL": "Delivery",
        "FC": "Freight service",
        "FI": "Financing",
        "IN": "Insurance",
        "LA": "Labelling",
        "PAD": "Promotion allowance",
        "PC": "Packing",
        "SH": "Special handling",
        "TX": "Tax",
        "ZZZ": "Mutually defined",
    }
)

SUPPORTED_MIME_TYPES = frozenset(
    {
        "application/pdf",
        "image/png",
        "image/jpeg",
        "image/jpg",
        "image/gif",
        "application/xml",
        "text/xml",
        "text/csv",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "application/vnd.ms-excel",
        "application/zip",
        "text/plain",
    }
)

MIME_TYPES_BY_EXTENSION = MappingProxyType(
    {
        "pdf": "application/pdf",
        "png": "image/png",
        "jpg": "image/jpeg",
        "jpeg": "image/jpeg",
        "gif": "image/gif",
        "xml": "application/xml",
        "csv": "text/csv",
        "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "xls": "application/vnd.ms-excel",
        "zip": "application/zip",
        "txt": "text/plain",
    }
)

MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024

# Absolute difference tolerated between a declared and a recomputed amount.
AMOUNT_TOLERANCE = Decimal("0.02")

__all__ = [
    "ALLOWANCE_REASON_CODES",
    "AMOUNT_TOLERANCE",
    "BE_VAT_RATES",
    "CHARGE_REASON_CODES",
    "CURRENCY_CODES",
    "CUSTOMIZATION_EN16931",
    "CUSTOMIZATION_PEPPOL",
    "CUSTOMIZATION_UBL_BE",
    "ELECTRONIC_ADDRESS_SCHEMES",
    "EXEMPT_CATEGORIES",
    "INVOICE_TYPE_CODES",
    "MAX_ATTACHMENT_SIZE",
    "MIME_TYPES_BY_EXTENSION",
    "NSMAP",
    "NS_CAC",
    "NS_CBC",
    "NS_INVOICE",
    "PAYMENT_MEANS_CODES",
    "PROFILE_EN16931",
    "PROFILE_IDENTIFIERS",
    "PROFILE_NAME_PEPPOL",
    "PROFILE_PEPPOL",
    "PROFILE_UBL_BE",
    "SUPPORTED_MIME_TYPES",
    "TRANSFER_PAYMENT_MEANS",
    "UNIT_CODES",
    "VAT_CATEGORIES",
    "VAT_EXEMPTION_REASONS",
    "ZERO_RATE_CATEGORIES",
]
