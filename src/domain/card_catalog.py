"""Static card catalog: names, per-level descriptions and image paths.

The order of ``CARD_TYPES`` is the display order used when listing cards.
"""

MIN_LEVEL = 1
MAX_LEVEL = 3
DEFAULT_CARD_TYPE = "uzun_kilic"

CARD_TYPES = (
    "uzun_kilic",
    "savas_baltasi",
    "buyu_asasi",
    "kalkan",
    "savas_cekici",
    "egri_kilic",
    "kisa_kilic",
    "buyu_kitabi",
)

CARD_NAMES = {
    "uzun_kilic": "Uzun Kılıç",
    "savas_baltasi": "Savaş Baltası",
    "buyu_asasi": "Büyü Asası",
    "kalkan": "Kalkan",
    "savas_cekici": "Savaş Çekici",
    "egri_kilic": "Eğri Kılıç",
    "kisa_kilic": "Kısa Kılıç",
    "buyu_kitabi": "Büyü Kitabı",
}

# Index 0..2 matches level 1..3.
LEVEL_DESCRIPTIONS = {
    "uzun_kilic": (
        "Gümüş Diş - Sade, keskin bir savaş kılıcı.",
        "Zümrüt Yürek - Can alıcı darbeler için güçlendirildi.",
        "Altın Pençe - Kralların kanını döken efsanevi keskinlik.",
    ),
    "savas_baltasi": (
        "Ay Parçası - Hafif ve hızlı bir balta.",
        "Zümrüt Kesik - Derin yaralar açan büyülü çelik.",
        "Efsane Yarma - Tek vuruşta kale kapısı deler.",
    ),
    "buyu_asasi": (
        "Gölge Dalı - Temel büyü asası.",
        "Zümrüt Kök - Doğanın gücüyle titreşir.",
        "Altın Kök - Yıldızları yere indirir, zamanı büker.",
    ),
    "kalkan": (
        "Gümüş Siperi - Basit bir koruma aracı.",
        "Zümrüt Zırh - Gelen saldırıyı yansıtır.",
        "Altın Duvar - Tanrılar bile geçemez.",
    ),
    "savas_cekici": (
        "Taş Parçalayıcı - Ağır ve yıkıcı.",
        "Zümrüt Ezici - Zırhları paramparça eder.",
        "Altın Hüküm - Dünyayı çatlatır, düşmanları ezer.",
    ),
    "egri_kilic": (
        "Gümüş Pençe - Hafif ve çevik bir bıçak.",
        "Zümrüt Çengel - Derin kesikler için eğildi.",
        "Altın Yılan - Gölge gibi kayar, kaderi biçer.",
    ),
    "kisa_kilic": (
        "Gölge Kesik - Hızlı saldırılar için ideal.",
        "Zümrüt Fısıltı - Sessiz ama ölümcül.",
        "Altın Dilim - Zamanda bile iz bırakır.",
    ),
    "buyu_kitabi": (
        "Gümüş Sayfalar - Temel büyüleri içerir.",
        "Zümrüt Kehanet - Geleceği okur, kaderi değiştirir.",
        "Altın Kitabe - Evrenin sırlarını fısıldar, gerçekliği ezer.",
    ),
}


def _clamp_level(level: int) -> int:
    return max(MIN_LEVEL, min(MAX_LEVEL, level))


def card_type_for_id(card_id: str) -> str:
    """Kind used when provisioning a card: the id itself when it names a kind."""
    if card_id in CARD_TYPES:
        return card_id
    return DEFAULT_CARD_TYPE


def card_name(card_type: str) -> str:
    return CARD_NAMES[card_type]


def card_image(card_type: str, level: int) -> str:
    """Image path for the given kind and level; out-of-range levels are clamped."""
    return f"/images/{card_type}_{_clamp_level(level)}.png"


def card_description(card_type: str, level: int) -> str:
    return LEVEL_DESCRIPTIONS[card_type][_clamp_level(level) - 1]


def catalog_position(card_type: str) -> int:
    """Sort key that keeps cards in catalog order; unknown kinds go last."""
    try:
        return CARD_TYPES.index(card_type)
    except ValueError:
        return len(CARD_TYPES)
