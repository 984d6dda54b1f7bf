"""Inventory constants.

Stock units, item kinds and the catalog classification choices.  The
human-readable labels are plain lookup tables carried by ``TextChoices``.
"""

from django.db import models


class StockUnit(models.TextChoices):
    PIECE = "PIECE", "pcs"
    METER = "METER", "m"


class StockItemKind(models.TextChoices):
    FLOWER = "FLOWER", "Flower"
    MATERIAL = "MATERIAL", "Material"


UNIT_BY_KIND: dict[str, str] = {
    StockItemKind.FLOWER: StockUnit.PIECE,
    StockItemKind.MATERIAL: StockUnit.METER,
}

LENGTH_DECIMAL_PLACES = 3
LENGTH_MAX_DIGITS = 10


class FlowerType(models.TextChoices):
    ROSE = "ROSE", "Rose"
    TULIP = "TULIP", "Tulip"
    LILY = "LILY", "Lily"
    CHRYSANTHEMUM = "CHRYSANTHEMUM", "Chrysanthemum"
    PEONY = "PEONY", "Peony"
    IRIS = "IRIS", "Iris"
    CARNATION = "CARNATION", "Carnation"
    GERBERA = "GERBERA", "Gerbera"
    ALSTROEMERIA = "ALSTROEMERIA", "Alstroemeria"
    FREESIA = "FREESIA", "Freesia"
    SUNFLOWER = "SUNFLOWER", "Sunflower"
    HYDRANGEA = "HYDRANGEA", "Hydrangea"
    ORCHID = "ORCHID", "Orchid"
    ANTHURIUM = "ANTHURIUM", "Anthurium"
    PROTEA = "PROTEA", "Protea"


class FlowerColor(models.TextChoices):
    RED = "RED", "Red"
    WHITE = "WHITE", "White"
    PINK = "PINK", "Pink"
    YELLOW = "YELLOW", "Yellow"
    ORANGE = "ORANGE", "Orange"
    PURPLE = "PURPLE", "Purple"
    BLUE = "BLUE", "Blue"
    GREEN = "GREEN", "Green"
    CREAM = "CREAM", "Cream"
    PEACH = "PEACH", "Peach"
    BURGUNDY = "BURGUNDY", "Burgundy"
    LAVENDER = "LAVENDER", "Lavender"
    CORAL = "CORAL", "Coral"
    SALMON = "SALMON", "Salmon"
    MULTICOLOR = "MULTICOLOR", "Multicolor"


class SeasonalAvailability(models.TextChoices):
    YEAR_ROUND = "YEAR_ROUND", "Year round"
    SPRING = "SPRING", "Spring"
    SUMMER = "SUMMER", "Summer"
    AUTUMN = "AUTUMN", "Autumn"
    WINTER = "WINTER", "Winter"
    SPRING_SUMMER = "SPRING_SUMMER", "Spring-Summer"
    AUTUMN_WINTER = "AUTUMN_WINTER", "Autumn-Winter"
    HOLIDAY_SEASON = "HOLIDAY_SEASON", "Holiday season"
    LIMITED = "LIMITED", "Limited"


class MaterialType(models.TextChoices):
    RIBBON = "RIBBON", "Ribbon"
    WRAPPING_PAPER = "WRAPPING_PAPER", "Wrapping paper"
    CELLOPHANE = "CELLOPHANE", "Cellophane"
    ORGANZA = "ORGANZA", "Organza"
    BURLAP = "BURLAP", "Burlap"
    WIRE = "WIRE", "Wire"
    TAPE = "TAPE", "Tape"
    TWINE = "TWINE", "Twine"
    FABRIC = "FABRIC", "Fabric"
    MESH = "MESH", "Mesh"
    FOAM = "FOAM", "Floral foam"
    OASIS = "OASIS", "Oasis"
    DECORATIVE_ELEMENTS = "DECORATIVE_ELEMENTS", "Decorative elements"
