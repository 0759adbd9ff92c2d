"""Display labels for opaque country, MCC, merchant-category and merchant codes"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Sequence

from issuing_console.domain.models import CountryOption, MccCodeOption, Merchant, MerchantCategory

ANY_LABEL = "Any"


def sort_countries(countries: Iterable[CountryOption]) -> List[CountryOption]:
    return sorted(countries, key=lambda c: c.code)


def sort_mcc_codes(codes: Iterable[MccCodeOption]) -> List[MccCodeOption]:
    return sorted(codes, key=lambda m: m.code)


def sort_merchant_categories(categories: Iterable[MerchantCategory]) -> List[MerchantCategory]:
    return sorted(categories, key=lambda c: (c.display_order, c.name))


def country_label(country: CountryOption) -> str:
    if country.region and country.region.strip():
        return f"{country.code} – {country.name} ({country.region})"
    return f"{country.code} – {country.name}"


@dataclass
class LabelResolver:
    """In-memory code -> label index built from the metadata lists"""

    countries: List[CountryOption] = field(default_factory=list)
    mcc_codes: List[MccCodeOption] = field(default_factory=list)
    merchant_categories: List[MerchantCategory] = field(default_factory=list)
    _merchants: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.countries = sort_countries(self.countries)
        self.mcc_codes = sort_mcc_codes(self.mcc_codes)
        self.merchant_categories = sort_merchant_categories(self.merchant_categories)
        self._countries = {c.code.upper(): country_label(c) for c in self.countries}
        self._mcc = {m.code: f"{m.code} – {m.name}" for m in self.mcc_codes}
        self._categories = {c.id: c.name for c in self.merchant_categories if c.id}

    def remember_merchants(self, merchants: Iterable[Merchant]) -> None:
        for merchant in merchants:
            if merchant.id:
                self._merchants[merchant.id] = merchant.name or merchant.id

    def country(self, code: str) -> str:
        return self._countries.get(code.upper(), code)

    def mcc(self, code: str) -> str:
        return self._mcc.get(code, code)

    def merchant_category(self, category_id: str) -> str:
        return self._categories.get(category_id, category_id)

    def merchant(self, merchant_id: str) -> str:
        return self._merchants.get(merchant_id, merchant_id)

    def describe_codes(self, codes: Optional[Sequence[str]], kind: str) -> str:
        """Comma-joined labels, or "Any" when the rule is absent"""
        if not codes:
            return ANY_LABEL
        resolve = {
            "country": self.country,
            "mcc": self.mcc,
            "merchant_category": self.merchant_category,
            "merchant": self.merchant,
        }[kind]
        return ", ".join(resolve(str(code)) for code in codes)
