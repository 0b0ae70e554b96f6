from decimal import Decimal

PACKAGE_FIELDS = {
    1: 'price_1h',
    2: 'price_2h',
    3: 'price_3h',
}


def is_weekend(day):
    return day.weekday() >= 5


def calculate_price(venue, duration_hours, booking_date):
    """
    Цена брони по тарифу площадки. Срабатывает первое подходящее правило:
    пакетная цена за 1/2/3 часа, затем цена выходного/будничного часа,
    затем базовая цена. Нулевой или пустой тариф считается не заданным.
    """
    hours = int(duration_hours)

    package_field = PACKAGE_FIELDS.get(hours)
    if package_field:
        package_price = getattr(venue, package_field)
        if package_price:
            return Decimal(package_price)

    if is_weekend(booking_date):
        if venue.weekend_price:
            return Decimal(venue.weekend_price) * hours
    elif venue.weekday_price:
        return Decimal(venue.weekday_price) * hours

    return Decimal(venue.base_price) * hours
