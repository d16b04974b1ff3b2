"""Static catalog of tracked instruments.

The catalog is loaded once at import and never mutated. Tickers follow the
market data provider's notation ("PETR4.SA", "GC=F", "BTC-USD", "USDBRL=X").
"""

from dataclasses import dataclass
from types import MappingProxyType

DOMESTIC_EQUITY = "domestic_equity"
FOREIGN_EQUITY = "foreign_equity"
COMMODITY = "commodity"
CRYPTO = "crypto"
CURRENCY = "currency"

CATEGORIES = (DOMESTIC_EQUITY, FOREIGN_EQUITY, COMMODITY, CRYPTO, CURRENCY)
EQUITY_CATEGORIES = frozenset({DOMESTIC_EQUITY, FOREIGN_EQUITY})

# Rows in these categories quote their close in BRL
BRL_QUOTED_CATEGORIES = frozenset({DOMESTIC_EQUITY, CURRENCY})


@dataclass(frozen=True)
class Instrument:
    """A tracked instrument."""

    ticker: str
    name: str
    sector: str
    category: str
    unit: str = ""

    @property
    def is_equity(self) -> bool:
        return self.category in EQUITY_CATEGORIES

    @property
    def is_brazilian(self) -> bool:
        return self.category == DOMESTIC_EQUITY


_IBOVESPA_STOCKS: dict[str, tuple[str, str]] = {
    # Bancos e Financeiro
    "BBAS3.SA": ("Banco do Brasil", "Bancário"),
    "BBDC3.SA": ("Bradesco ON", "Bancário"),
    "BBDC4.SA": ("Bradesco PN", "Bancário"),
    "ITUB3.SA": ("Itaú Unibanco ON", "Bancário"),
    "ITUB4.SA": ("Itaú Unibanco PN", "Bancário"),
    "SANB11.SA": ("Santander Brasil", "Bancário"),
    "BPAC11.SA": ("BTG Pactual", "Bancário"),
    "INBR32.SA": ("Banco Inter", "Bancário"),
    "NU": ("Nubank", "Bancário"),
    "BBSE3.SA": ("BB Seguridade", "Seguros"),
    "IRBR3.SA": ("IRB Brasil RE", "Seguros"),
    "PSSA3.SA": ("Porto Seguro", "Seguros"),
    "B3SA3.SA": ("B3", "Serviços Financeiros"),
    # Holdings
    "ITSA4.SA": ("Itaúsa PN", "Holding"),
    # Petróleo e Gás
    "PETR3.SA": ("Petrobras ON", "Petróleo e Gás"),
    "PETR4.SA": ("Petrobras PN", "Petróleo e Gás"),
    "PRIO3.SA": ("PetroRio", "Petróleo e Gás"),
    "RECV3.SA": ("PetroReconcavo", "Petróleo e Gás"),
    "UGPA3.SA": ("Ultrapar", "Petróleo e Gás"),
    "CSAN3.SA": ("Cosan", "Petróleo e Gás"),
    "VBBR3.SA": ("Vibra Energia", "Petróleo e Gás"),
    "RAIZ4.SA": ("Raízen", "Petróleo e Gás"),
    # Mineração e Siderurgia
    "VALE3.SA": ("Vale", "Mineração"),
    "CSNA3.SA": ("CSN", "Siderurgia"),
    "GGBR4.SA": ("Gerdau PN", "Siderurgia"),
    "GOAU4.SA": ("Metalúrgica Gerdau PN", "Siderurgia"),
    "USIM5.SA": ("Usiminas PNA", "Siderurgia"),
    "BRAP4.SA": ("Bradespar PN", "Mineração"),
    "CMIN3.SA": ("CSN Mineração", "Mineração"),
    # Energia Elétrica
    "EGIE3.SA": ("Engie Brasil", "Energia Elétrica"),
    "EQTL3.SA": ("Equatorial", "Energia Elétrica"),
    "CPFE3.SA": ("CPFL Energia", "Energia Elétrica"),
    "CMIG4.SA": ("Cemig PN", "Energia Elétrica"),
    "ENGI11.SA": ("Energisa", "Energia Elétrica"),
    "TAEE11.SA": ("Taesa", "Energia Elétrica"),
    "CPLE3.SA": ("Copel ON", "Energia Elétrica"),
    "AURE3.SA": ("Auren Energia", "Energia Elétrica"),
    "ENEV3.SA": ("Eneva", "Energia Elétrica"),
    "NEOE3.SA": ("Neoenergia", "Energia Elétrica"),
    # Saneamento
    "SBSP3.SA": ("Sabesp", "Saneamento"),
    "CSMG3.SA": ("Copasa", "Saneamento"),
    "SAPR11.SA": ("Sanepar", "Saneamento"),
    # Telecomunicações
    "VIVT3.SA": ("Telefônica Brasil", "Telecomunicações"),
    "TIMS3.SA": ("TIM", "Telecomunicações"),
    "OIBR3.SA": ("Oi ON", "Telecomunicações"),
    # Varejo
    "MGLU3.SA": ("Magazine Luiza", "Varejo"),
    "LREN3.SA": ("Lojas Renner", "Varejo"),
    "AMER3.SA": ("Americanas", "Varejo"),
    "BHIA3.SA": ("Casas Bahia", "Varejo"),
    "PETZ3.SA": ("Petz", "Varejo"),
    "AZZA3.SA": ("Azzas 2154", "Varejo"),
    "LWSA3.SA": ("Locaweb", "Tecnologia"),
    "CASH3.SA": ("Méliuz", "Tecnologia"),
    "POSI3.SA": ("Positivo", "Tecnologia"),
    "GMAT3.SA": ("Grupo Mateus", "Varejo"),
    "ASAI3.SA": ("Assaí", "Varejo"),
    "PCAR3.SA": ("Pão de Açúcar", "Varejo"),
    "ALPA4.SA": ("Alpargatas", "Varejo"),
    "GRND3.SA": ("Grendene", "Varejo"),
    "VULC3.SA": ("Vulcabras", "Varejo"),
    # Alimentos e Bebidas
    "ABEV3.SA": ("Ambev", "Bebidas"),
    "BEEF3.SA": ("Minerva", "Alimentos"),
    "MDIA3.SA": ("M. Dias Branco", "Alimentos"),
    "SMTO3.SA": ("São Martinho", "Açúcar e Álcool"),
    # Saúde
    "RDOR3.SA": ("Rede D'Or", "Saúde"),
    "HAPV3.SA": ("Hapvida", "Saúde"),
    "FLRY3.SA": ("Fleury", "Saúde"),
    "RADL3.SA": ("Raia Drogasil", "Saúde"),
    "HYPE3.SA": ("Hypera", "Saúde"),
    "PNVL3.SA": ("Dasa", "Saúde"),
    "QUAL3.SA": ("Qualicorp", "Saúde"),
    # Construção Civil e Imobiliário
    "CYRE3.SA": ("Cyrela", "Construção"),
    "EZTC3.SA": ("EZTEC", "Construção"),
    "MRVE3.SA": ("MRV", "Construção"),
    "TEND3.SA": ("Tenda", "Construção"),
    "JHSF3.SA": ("JHSF Participações", "Construção"),
    "LAVV3.SA": ("Lavvi", "Construção"),
    "MULT3.SA": ("Multiplan", "Shoppings"),
    "IGTI11.SA": ("Iguatemi", "Shoppings"),
    # Indústria
    "WEGE3.SA": ("WEG", "Industrial"),
    "EMBJ3.SA": ("Embraer", "Aeronáutica"),
    "RAIL3.SA": ("Rumo", "Logística"),
    "ECOR3.SA": ("Ecorodovias", "Concessões"),
    "RENT3.SA": ("Localiza", "Locação de Veículos"),
    "MOVI3.SA": ("Movida", "Locação de Veículos"),
    "SUZB3.SA": ("Suzano", "Papel e Celulose"),
    "KLBN11.SA": ("Klabin", "Papel e Celulose"),
    "RANI3.SA": ("Irani", "Papel e Celulose"),
    "RAPT4.SA": ("Randon", "Industrial"),
    "LEVE3.SA": ("Metal Leve", "Industrial"),
    "POMO4.SA": ("Marcopolo", "Industrial"),
    # Transporte e Aviação
    "AZUL4.SA": ("Azul", "Aviação"),
    # Educação
    "YDUQ3.SA": ("Yduqs", "Educação"),
    "COGN3.SA": ("Cogna", "Educação"),
    # Outros
    "TOTS3.SA": ("Totvs", "Tecnologia"),
    "CVCB3.SA": ("CVC", "Turismo"),
    "VIVA3.SA": ("Vivara", "Varejo"),
    "BMOB3.SA": ("Bmob3", "Tecnologia"),
    "SLCE3.SA": ("SLC Agrícola", "Agronegócio"),
    "AGRO3.SA": ("BrasilAgro", "Agronegócio"),
    "GGPS3.SA": ("GPS Participações", "Holding"),
}

_US_STOCKS: dict[str, tuple[str, str]] = {
    "AAPL": ("Apple", "Tecnologia"),
    "MSFT": ("Microsoft", "Tecnologia"),
    "GOOGL": ("Alphabet (Google)", "Tecnologia"),
    "AMZN": ("Amazon", "Tecnologia"),
    "META": ("Meta (Facebook)", "Tecnologia"),
    "NVDA": ("NVIDIA", "Tecnologia"),
    "TSLA": ("Tesla", "Automotivo"),
    "JPM": ("JPMorgan Chase", "Bancário"),
    "BAC": ("Bank of America", "Bancário"),
    "WFC": ("Wells Fargo", "Bancário"),
    "GS": ("Goldman Sachs", "Bancário"),
    "JNJ": ("Johnson & Johnson", "Saúde"),
    "UNH": ("UnitedHealth", "Saúde"),
    "PFE": ("Pfizer", "Farmacêutico"),
    "KO": ("Coca-Cola", "Bebidas"),
    "PEP": ("PepsiCo", "Bebidas"),
    "MCD": ("McDonald's", "Restaurantes"),
    "WMT": ("Walmart", "Varejo"),
    "XOM": ("Exxon Mobil", "Petróleo e Gás"),
    "CVX": ("Chevron", "Petróleo e Gás"),
}

_COMMODITIES: dict[str, tuple[str, str, str]] = {
    "GC=F": ("Ouro", "Metal Precioso", "oz"),
    "SI=F": ("Prata", "Metal Precioso", "oz"),
    "PL=F": ("Platina", "Metal Precioso", "oz"),
    "PA=F": ("Paládio", "Metal Precioso", "oz"),
}

_CRYPTO: dict[str, tuple[str, str, str]] = {
    "BTC-USD": ("Bitcoin", "Criptomoeda", "unidade"),
    "ETH-USD": ("Ethereum", "Criptomoeda", "unidade"),
}

_CURRENCY: dict[str, tuple[str, str, str]] = {
    "USDBRL=X": ("Dólar/Real", "Câmbio", ""),
}


def _build_catalog() -> MappingProxyType:
    catalog: dict[str, Instrument] = {}
    for ticker, (name, sector) in _IBOVESPA_STOCKS.items():
        catalog[ticker] = Instrument(ticker, name, sector, DOMESTIC_EQUITY)
    for ticker, (name, sector) in _US_STOCKS.items():
        catalog[ticker] = Instrument(ticker, name, sector, FOREIGN_EQUITY)
    for category, table in ((COMMODITY, _COMMODITIES), (CRYPTO, _CRYPTO), (CURRENCY, _CURRENCY)):
        for ticker, (name, sector, unit) in table.items():
            catalog[ticker] = Instrument(ticker, name, sector, category, unit)
    return MappingProxyType(catalog)


CATALOG: MappingProxyType = _build_catalog()


def all_instruments() -> list[Instrument]:
    """Every tracked instrument, domestic equities first, currency last."""
    return list(CATALOG.values())


def get_instrument(ticker: str) -> Instrument:
    """Look up a ticker, falling back to an "unknown" domestic equity."""
    instrument = CATALOG.get(ticker)
    if instrument is None:
        return Instrument(ticker, "Desconhecido", "Outro", DOMESTIC_EQUITY)
    return instrument


def category_for(ticker: str) -> str:
    return get_instrument(ticker).category


def is_brazilian(ticker: str) -> bool:
    instrument = CATALOG.get(ticker)
    return instrument is not None and instrument.is_brazilian
