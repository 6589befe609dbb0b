# store/store_utils.py
import json
from decimal import Decimal, ROUND_HALF_UP
from functools import wraps

from django.http import JsonResponse

from .models import Wallpaper

CART_SESSION_KEY = 'cart'


# -------------------------------
# Session cart
# -------------------------------
def get_cart(request):
    return request.session.get(CART_SESSION_KEY, {}) or {}


def save_cart(request, cart):
    request.session[CART_SESSION_KEY] = cart
    request.session.modified = True


def clear_cart(request):
    save_cart(request, {})


def cart_key(wallpaper_id, roll_size):
    return f"{wallpaper_id}:{roll_size}"


def get_cart_count(request):
    """
    Returns the total item count in the session cart.
    """
    return sum(int(line.get('quantity', 0)) for line in get_cart(request).values())


def cart_lines(request):
    """
    Resolve the session cart against the catalog.
    Prices always come from the database, never from the session.
    Returns ``(lines, total_price)``.
    """
    cart = get_cart(request)
    ids = {line['wallpaper_id'] for line in cart.values()}
    wallpapers = Wallpaper.objects.filter(pk__in=ids, status='active').in_bulk()

    lines = []
    total_price = Decimal('0.00')
    for key, line in cart.items():
        wallpaper = wallpapers.get(line['wallpaper_id'])
        if wallpaper is None:
            continue
        quantity = int(line['quantity'])
        item_total = wallpaper.price * quantity
        total_price += item_total
        lines.append({
            'key': key,
            'wallpaper': wallpaper,
            'quantity': quantity,
            'roll_size': line.get('roll_size', ''),
            'pattern_size': line.get('pattern_size'),
            'item_total': item_total,
        })
    return lines, total_price.quantize(Decimal('0.01'))


def serialize_line(line):
    wallpaper = line['wallpaper']
    return {
        'id': line['key'],
        'wallpaperId': wallpaper.pk,
        'name': wallpaper.name,
        'description': wallpaper.description,
        'price': float(wallpaper.price),
        'quantity': line['quantity'],
        'imageUrl': wallpaper.image_url,
        'options': {
            'rollSize': line['roll_size'],
            'patternSize': line['pattern_size'],
        },
        'isCustom': wallpaper.is_custom,
        'itemTotal': float(line['item_total']),
    }


# -------------------------------
# Money
# -------------------------------
def to_cents(amount):
    return int((Decimal(str(amount)) * 100).quantize(Decimal('1'), rounding=ROUND_HALF_UP))


def parse_amount(value):
    """
    Positive dollar amount from a request field, or ValueError.
    """
    if isinstance(value, bool):
        raise ValueError("Invalid amount")
    try:
        amount = Decimal(str(value))
    except (ArithmeticError, ValueError):
        raise ValueError("Invalid amount")
    if not amount.is_finite() or amount <= 0:
        raise ValueError("Amount must be greater than zero")
    return amount.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)


# -------------------------------
# JSON request / response helpers
# -------------------------------
def json_error(message, status=400):
    return JsonResponse({'error': message}, status=status)


def parse_json_body(request):
    try:
        data = json.loads(request.body or b'{}')
    except ValueError:
        raise ValueError("Invalid JSON body")
    if not isinstance(data, dict):
        raise ValueError("Expected a JSON object")
    return data


def login_required_json(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return json_error('Authentication required', status=401)
        return view(request, *args, **kwargs)
    return wrapper
