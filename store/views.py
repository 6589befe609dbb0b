import logging
from decimal import Decimal

import stripe
from botocore.exceptions import BotoCoreError, ClientError
from cloudinary.exceptions import Error as CloudinaryError
from django.conf import settings
from django.db.models import Q
from django.http import JsonResponse
from django.shortcuts import get_object_or_404
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import identity, imagine, orders, payments, ranking, storage
from .models import Category, Wallpaper
from .store_utils import (
    cart_key,
    cart_lines,
    clear_cart,
    get_cart,
    get_cart_count,
    json_error,
    login_required_json,
    parse_json_body,
    save_cart,
    serialize_line,
)

logger = logging.getLogger(__name__)

SORT_FIELDS = {
    'price': 'price',
    'date': 'created_at',
}
DEFAULT_PAGE_SIZE = 24
MAX_PAGE_SIZE = 100

# Free-text fields accepted when saving a generated design
TEXT_FIELDS = ('name', 'description', 'size', 'prompt')


def _int_param(value, default, minimum=0, maximum=None):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    number = max(number, minimum)
    if maximum is not None:
        number = min(number, maximum)
    return number


# -------------------------------
# Catalog
# -------------------------------
@require_GET
def wallpaper_list(request):
    """
    Curated catalog. Sorted by ranking unless ``sort`` asks for price or date;
    paged with ``limit`` / ``nextToken`` (an offset).
    """
    wallpapers = Wallpaper.objects.filter(status='active', is_custom=False)

    category = request.GET.get('category', '').strip()
    if category:
        wallpapers = wallpapers.filter(category__name__iexact=category)

    search = request.GET.get('q', '').strip()
    if search:
        wallpapers = wallpapers.filter(Q(name__icontains=search) | Q(description__icontains=search))

    try:
        if request.GET.get('priceMin'):
            wallpapers = wallpapers.filter(price__gte=Decimal(request.GET['priceMin']))
        if request.GET.get('priceMax'):
            wallpapers = wallpapers.filter(price__lte=Decimal(request.GET['priceMax']))
    except ArithmeticError:
        return json_error('Invalid price filter')

    sort_by = request.GET.get('sortBy', 'ranking')
    descending = request.GET.get('sortOrder', 'asc') == 'desc'
    if sort_by in SORT_FIELDS:
        field = SORT_FIELDS[sort_by]
        entries = [(w, w.ranking) for w in wallpapers.select_related('category').order_by(
            f"-{field}" if descending else field, '-created_at'
        )]
    else:
        entries = ranking.ranked_wallpapers(wallpapers)
        if descending:
            entries.reverse()

    limit = _int_param(request.GET.get('limit'), DEFAULT_PAGE_SIZE, minimum=1, maximum=MAX_PAGE_SIZE)
    offset = _int_param(request.GET.get('nextToken'), 0)
    page = entries[offset:offset + limit]
    next_token = offset + limit if offset + limit < len(entries) else None

    return JsonResponse({
        'wallpapers': [w.to_dict(ranking=rank) for w, rank in page],
        'nextToken': next_token,
    })


@require_GET
def wallpaper_detail(request, pk):
    wallpaper = get_object_or_404(Wallpaper.objects.select_related('category'), pk=pk, status='active')
    data = wallpaper.to_dict()
    data['likes'] = wallpaper.likes.count()
    data['liked'] = (
        request.user.is_authenticated and wallpaper.likes.filter(user=request.user).exists()
    )
    return JsonResponse(data)


@require_GET
def category_list(request):
    return JsonResponse({'categories': list(Category.objects.order_by('name').values_list('name', flat=True))})


@login_required_json
@require_POST
def toggle_like(request, pk):
    get_object_or_404(Wallpaper, pk=pk, status='active')
    liked, new_ranking = ranking.toggle_like(request.user, pk)
    return JsonResponse({
        'liked': liked,
        'ranking': new_ranking,
        'likes': Wallpaper.objects.get(pk=pk).likes.count(),
    })


@login_required_json
@require_GET
def my_wallpapers(request):
    status = request.GET.get('status', 'active')
    wallpapers = Wallpaper.objects.filter(owner=request.user, status=status).order_by('-created_at')
    return JsonResponse({'wallpapers': [w.to_dict() for w in wallpapers]})


@login_required_json
@require_POST
def delete_wallpaper(request, pk):
    """
    Soft delete: the record stays, the catalog stops showing it.
    """
    wallpaper = get_object_or_404(Wallpaper, pk=pk)
    if wallpaper.owner_id != request.user.pk and not request.user.is_staff:
        return json_error('You can only delete your own wallpapers', status=403)
    wallpaper.status = 'deleted'
    wallpaper.save(update_fields=['status'])
    return JsonResponse({'success': True, 'id': wallpaper.pk, 'status': wallpaper.status})


# -------------------------------
# CART SYSTEM
# -------------------------------
def _cart_response(request, status=200):
    lines, total_price = cart_lines(request)
    return JsonResponse({
        'items': [serialize_line(line) for line in lines],
        'total': float(total_price),
        'cart_count': get_cart_count(request),
    }, status=status)


@require_GET
def cart_view(request):
    return _cart_response(request)


@require_POST
def add_to_cart(request):
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))

    wallpaper_id = _int_param(data.get('wallpaperId'), 0)
    roll_size = str(data.get('rollSize') or '').strip()
    quantity = _int_param(data.get('quantity', 1), 0)
    if not wallpaper_id or not roll_size:
        return json_error('wallpaperId and rollSize are required')
    if quantity < 1:
        return json_error('Quantity must be at least 1')

    wallpaper = get_object_or_404(Wallpaper, pk=wallpaper_id, status='active')
    if wallpaper.is_custom and wallpaper.owner_id != request.user.pk:
        return json_error('Wallpaper not found', status=404)

    cart = get_cart(request)
    key = cart_key(wallpaper.pk, roll_size)
    if key in cart:
        cart[key]['quantity'] += quantity
    else:
        cart[key] = {
            'wallpaper_id': wallpaper.pk,
            'roll_size': roll_size,
            'pattern_size': data.get('patternSize'),
            'quantity': quantity,
        }
    save_cart(request, cart)

    ranking.record_cart_add(wallpaper.pk)
    return _cart_response(request, status=201)


def update_cart_item(request):
    if request.method == 'POST':
        try:
            data = parse_json_body(request)
            key = str(data.get('id'))
            action = data.get('action')

            cart = get_cart(request)

            if key in cart:
                if action == 'increase':
                    cart[key]['quantity'] += 1
                elif action == 'decrease':
                    cart[key]['quantity'] -= 1
                    if cart[key]['quantity'] < 1:
                        del cart[key]
                elif action == 'remove':
                    del cart[key]
                elif 'quantity' in data:
                    quantity = int(data['quantity'])
                    # quantities below one are ignored, removal is explicit
                    if quantity >= 1:
                        cart[key]['quantity'] = quantity

            save_cart(request, cart)

            # Return success and new count for frontend JS to update
            return JsonResponse({'status': 'success', 'cart_count': get_cart_count(request)})
        except (TypeError, ValueError) as e:
            return JsonResponse({'status': 'error', 'message': str(e)}, status=400)

    return JsonResponse({'status': 'error', 'message': 'Invalid request'}, status=400)


@require_POST
def remove_from_cart(request):
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))
    cart = get_cart(request)
    key = str(data.get('id', ''))
    if key in cart:
        del cart[key]
        save_cart(request, cart)
    return _cart_response(request)


@require_POST
def clear_cart_view(request):
    clear_cart(request)
    return _cart_response(request)


# -------------------------------
# CHECKOUT
# -------------------------------
@require_POST
def checkout(request):
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))

    payment_method_id = data.get('paymentMethodId')
    if not payment_method_id:
        return json_error('Missing payment method')

    lines, total_price = cart_lines(request)
    if not lines:
        return json_error('Your cart is empty.')

    user = request.user
    try:
        customer_id, _ = payments.get_or_create_customer(user.pk, user.email, user.get_full_name())
        intent = payments.process_payment(
            total_price,
            payment_method_id,
            return_url=f"{settings.SITE_URL}/cart",
            customer_id=customer_id,
            metadata={'userId': str(user.pk)},
        )
    except stripe.CardError as e:
        logger.warning("Checkout declined for user %s: %s", user.pk, e.user_message)
        return json_error(e.user_message or 'Your payment was declined', status=402)
    except stripe.StripeError as e:
        logger.exception("Checkout payment failed for user %s", user.pk)
        return json_error(e.user_message or 'Payment processing failed', status=502)

    if intent.status not in ('succeeded', 'processing'):
        return JsonResponse({
            'error': 'Payment requires additional action',
            'status': intent.status,
            'clientSecret': intent.client_secret,
        }, status=402)

    order = orders.place_order(
        user,
        lines,
        total_price,
        intent,
        payment_method=payment_method_id,
        shipping_address=data.get('shippingAddress', ''),
        billing_address=data.get('billingAddress', ''),
        email=data.get('email', ''),
    )

    # Clear cart only once the order is recorded
    clear_cart(request)
    return JsonResponse({'success': True, 'order': order.to_dict()}, status=201)


# -------------------------------
# ORDERS
# -------------------------------
@require_GET
def my_orders(request):
    return JsonResponse({'orders': [o.to_dict() for o in orders.orders_for_user(request.user)]})


@require_GET
def my_cart_orders(request):
    try:
        cart_orders = orders.get_customer_orders(request.user, request.GET.get('status') or None)
    except ValueError as e:
        return json_error(str(e))
    return JsonResponse({'cartOrders': [c.to_dict() for c in cart_orders]})


# -------------------------------
# USER PROFILE
# -------------------------------
@require_http_methods(['GET', 'PUT'])
def user_profile(request):
    username = request.user.get_username()
    try:
        if request.method == 'GET':
            return JsonResponse({'success': True, 'data': identity.get_profile(username)})

        try:
            data = parse_json_body(request)
        except ValueError as e:
            return JsonResponse({'success': False, 'message': str(e)}, status=400)
        if not data:
            return JsonResponse({'success': False, 'message': 'No data provided'}, status=400)

        profile = identity.update_profile(username, data)
        return JsonResponse({
            'success': True,
            'message': 'User information updated successfully',
            'data': profile,
        })
    except (BotoCoreError, ClientError) as e:
        logger.exception("User profile request failed for %s", username)
        return JsonResponse(
            {'success': False, 'message': 'Failed to access user data', 'error': str(e)},
            status=500,
        )


# -------------------------------
# IMAGE GENERATION
# -------------------------------
@require_POST
def imagine_submit(request):
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))

    prompt = data.get('prompt')
    if not prompt or not isinstance(prompt, str):
        return json_error('Invalid prompt provided')

    style = data.get('style')
    if style is not None and not isinstance(style, str):
        return json_error('style must be a string')

    colors = data.get('colors') or []
    if not isinstance(colors, list) or not all(isinstance(c, str) for c in colors):
        return json_error('colors must be a list of strings')

    try:
        request_id = imagine.submit_prompt(imagine.build_prompt(prompt, style, colors))
    except imagine.ImagineError as e:
        logger.error("Error generating image: %s", e)
        return json_error('Failed to generate image', status=e.status_code)
    return JsonResponse({'requestId': request_id})


@require_GET
def imagine_status(request, request_id):
    try:
        return JsonResponse(imagine.fetch_status(request_id))
    except imagine.ImagineError as e:
        logger.error("Error checking image status: %s", e)
        return json_error('Failed to get image status', status=e.status_code)


@require_GET
def imagine_results(request, request_id):
    try:
        return JsonResponse(imagine.fetch_results(request_id))
    except imagine.NotReady as e:
        return JsonResponse(
            {'status': e.status, 'progress': e.progress, 'message': 'Image generation in progress'},
            status=202,
        )
    except imagine.ImagineError as e:
        logger.error("Error getting image results: %s", e)
        return json_error('Failed to get image results', status=e.status_code)


@require_POST
def imagine_save(request):
    """
    Keep a generated image as a custom wallpaper owned by the shopper.
    """
    try:
        data = parse_json_body(request)
    except ValueError as e:
        return json_error(str(e))

    image_url = data.get('imageUrl')
    if not image_url or not isinstance(image_url, str) or not image_url.startswith('https://'):
        return json_error('A generated image URL is required')

    fields = {}
    for field in TEXT_FIELDS:
        value = data.get(field)
        if value is None:
            value = ''
        if not isinstance(value, str):
            return json_error(f"{field} must be a string")
        fields[field] = value

    try:
        upload = storage.upload_image(image_url, folder=storage.CUSTOM_FOLDER)
    except CloudinaryError:
        logger.exception("Uploading generated image failed for user %s", request.user.pk)
        return json_error('Failed to store generated image', status=502)

    wallpaper = Wallpaper.objects.create(
        name=fields['name'][:255],
        description=fields['description'],
        image=upload['public_id'],
        size=fields['size'][:100],
        # custom designs always sell at the house price
        price=Decimal(settings.CUSTOM_WALLPAPER_PRICE),
        owner=request.user,
        is_custom=True,
        prompt=fields['prompt'],
    )
    logger.info("Custom wallpaper %s saved for user %s", wallpaper.pk, request.user.pk)
    return JsonResponse(wallpaper.to_dict(), status=201)
