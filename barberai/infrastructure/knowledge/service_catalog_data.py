from __future__ import annotations

from barberai.domain.entities.service_catalog import ServiceCatalogEntry

SERVICE_CATALOG: dict[str, ServiceCatalogEntry] = {
    "haircut": ServiceCatalogEntry(
        service_key="haircut",
        name_en="Haircut",
        name_ar="قص شعر",
        duration_minutes=30,
        price=60,
        keywords_en=("haircut", "hair cut", "hair", "trim my hair", "fade", "buzz cut"),
        keywords_ar=("قص شعر", "قص", "قصه", "شعر", "حلاقه", "حلاقه شعر", "تدريج"),
        priority=1,
    ),
    "beard_trim": ServiceCatalogEntry(
        service_key="beard_trim",
        name_en="Beard trim",
        name_ar="تهذيب اللحية",
        duration_minutes=20,
        price=40,
        keywords_en=("beard", "beard trim", "trim my beard", "beard shape up", "line up"),
        keywords_ar=("لحيه", "ذقن", "دقن", "تهذيب لحيه", "تحديد لحيه", "تحديد"),
        priority=1,
    ),
    "shave": ServiceCatalogEntry(
        service_key="shave",
        name_en="Hot towel shave",
        name_ar="حلاقة ذقن بالموس",
        duration_minutes=30,
        price=50,
        keywords_en=("shave", "shaving", "hot towel", "hot towel shave", "razor", "clean shave"),
        keywords_ar=("حلاقه ذقن", "حلاقه دقن", "حلاقه لحيه", "موس", "بالموس", "فوطه ساخنه"),
        priority=2,
    ),
    "haircut_beard": ServiceCatalogEntry(
        service_key="haircut_beard",
        name_en="Haircut & beard",
        name_ar="قص شعر ولحية",
        duration_minutes=50,
        price=90,
        keywords_en=("haircut and beard", "hair and beard", "cut and beard", "combo", "full package"),
        keywords_ar=("شعر ولحيه", "قص ولحيه", "شعر ودقن", "شعر وذقن", "قص ودقن", "باكج", "بكج"),
        priority=3,
        includes=("haircut", "beard_trim"),
    ),
    "kids_haircut": ServiceCatalogEntry(
        service_key="kids_haircut",
        name_en="Kids haircut",
        name_ar="قص شعر أطفال",
        duration_minutes=30,
        price=40,
        keywords_en=("kids", "kid", "kids haircut", "child", "children", "my son", "boy"),
        keywords_ar=("اطفال", "طفل", "ولدي", "ابني", "للصغار", "قص شعر اطفال"),
        priority=2,
    ),
    "hair_color": ServiceCatalogEntry(
        service_key="hair_color",
        name_en="Hair colouring",
        name_ar="صبغة شعر",
        duration_minutes=60,
        price=120,
        keywords_en=("color", "colour", "coloring", "colouring", "dye", "hair dye"),
        keywords_ar=("صبغه", "صبغ", "صبغه شعر", "لون", "تلوين"),
        priority=2,
    ),
}
