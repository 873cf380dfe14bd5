import logging

import stripe
from django.conf import settings
from django.contrib import messages
from django.contrib.auth import get_user_model, login, logout
from django.contrib.auth.decorators import login_required
from django.db import DatabaseError, IntegrityError
from django.db.models import Prefetch
from django.http import HttpResponse, JsonResponse
from django.shortcuts import render, redirect, reverse
from django.utils.http import url_has_allowed_host_and_scheme
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_POST

from . import payments
from .cart import Cart
from .catalog import all_categories, catalog_search
from .exceptions import EmptyCartError, PaymentProviderError, UnavailableProductError
from .forms import (
    REGISTRATION_FAILED,
    AddToCartForm,
    LoginForm,
    ProfileForm,
    RegisterForm,
    SearchForm,
)
from .invoices import invoice_filename, invoice_items, render_invoice_pdf
from .models import Order, OrderItem, Product
from .orders import abandon_order, cancel_order, handle_stripe_event, start_checkout

logger = logging.getLogger(__name__)

User = get_user_model()


def _safe_next(request, default):
    next_url = request.POST.get('next') or request.GET.get('next')
    if next_url and url_has_allowed_host_and_scheme(
        next_url, allowed_hosts={request.get_host()}, require_https=request.is_secure()
    ):
        return next_url
    return reverse(default)


# -------------------------------
# Catalog
# -------------------------------
def home(request):
    search = request.GET.get('search', '').strip()
    products = catalog_search(q=search or None)
    return render(request, 'store/home.html', {
        'products': products,
        'search_term': search,
    })


def search(request):
    form = SearchForm(request.GET)
    products = catalog_search(**form.filters())
    return render(request, 'store/search.html', {
        'products': products,
        'categories': all_categories(),
        'form': form,
        'selected_categories': form.cleaned_data.get('category') or [],
        'query': request.GET,
    })


def categories(request):
    return render(request, 'store/categories.html', {'categories': all_categories()})


def product_detail(request, pk):
    product = Product.objects.active().select_related('category').filter(pk=pk).first()
    if product is None:
        return HttpResponse("Product not found.", status=404)
    return render(request, 'store/product_detail.html', {
        'product': product,
        'form': AddToCartForm(initial={'quantity': 1}),
    })


# -------------------------------
# Accounts
# -------------------------------
def register(request):
    form = RegisterForm(request.POST or None)
    if request.method == 'POST' and form.is_valid():
        try:
            user = User.objects.create_user(
                email=form.cleaned_data['email'],
                password=form.cleaned_data['password'],
                name=form.cleaned_data['name'],
            )
        except IntegrityError:
            # Lost a race with another sign-up using the same address
            form.add_error(None, REGISTRATION_FAILED)
        else:
            # The session is written by SessionMiddleware before the redirect leaves
            login(request, user)
            logger.info("User %s registered", user.pk)
            return redirect('home')
    return render(request, 'store/register.html', {'form': form})


def login_view(request):
    form = LoginForm(request.POST or None, request=request)
    if request.method == 'POST' and form.is_valid():
        login(request, form.user)
        return redirect(_safe_next(request, 'home'))
    return render(request, 'store/login.html', {'form': form})


@require_POST
def logout_view(request):
    # flush() empties the session, so SessionMiddleware also expires the cookie
    logout(request)
    return redirect('home')


@login_required
def profile(request):
    form = ProfileForm(request.POST or None, instance=request.user)
    if request.method == 'POST' and form.is_valid():
        form.save()
        return redirect(f"{reverse('profile')}?success=true")
    return render(request, 'store/profile.html', {
        'form': form,
        'success': request.GET.get('success') == 'true',
    })


# -------------------------------
# CART SYSTEM
# -------------------------------
@login_required
def cart_view(request):
    cart = Cart(request.session)
    return render(request, 'store/cart.html', {
        'cart': cart,
        'total': cart.total,
    })


@login_required
@require_POST
def add_to_cart(request, product_id):
    form = AddToCartForm(request.POST)
    if not form.is_valid():
        return redirect('home')

    product = Product.objects.filter(pk=product_id).first()
    if product is None:
        return HttpResponse("Product not found.", status=404)

    Cart(request.session).add(product, form.cleaned_data['quantity'])
    return redirect(_safe_next(request, 'home'))


@login_required
@require_POST
def remove_from_cart(request, product_id):
    Cart(request.session).remove(product_id)
    return redirect('cart')


# -------------------------------
# CHECKOUT
# -------------------------------
@login_required
@require_POST
def create_checkout_session(request):
    cart = Cart(request.session)
    try:
        order, session = start_checkout(request.user, cart)
    except EmptyCartError:
        return JsonResponse({'error': 'Your cart is empty.'}, status=400)
    except UnavailableProductError as e:
        for product_id in e.product_ids:
            cart.remove(product_id)
        return JsonResponse(
            {'error': 'Some items in your cart are no longer available.'}, status=400
        )
    except PaymentProviderError:
        return JsonResponse({'error': 'Could not start the checkout session.'}, status=500)

    return JsonResponse({
        'id': session.id,
        'url': getattr(session, 'url', None),
        'order_id': order.pk,
    })


@login_required
def order_success(request):
    Cart(request.session).clear()
    return render(request, 'store/order_success.html')


@login_required
def order_cancel(request):
    order_id = request.GET.get('order_id', '')
    if order_id.isdigit():
        try:
            abandon_order(int(order_id), request.user)
        except DatabaseError:
            logger.exception("Cleaning up cancelled order %s failed", order_id)
    return render(request, 'store/order_cancel.html')


@csrf_exempt
@require_POST
def stripe_webhook(request):
    if not settings.STRIPE_WEBHOOK_SECRET:
        logger.error("STRIPE_WEBHOOK_SECRET is not configured")
        return HttpResponse("Webhook secret is not configured.", status=500)

    sig_header = request.META.get('HTTP_STRIPE_SIGNATURE')
    if not sig_header:
        return HttpResponse("Webhook Error: missing signature", status=400)

    try:
        event = payments.construct_event(request.body, sig_header)
    except (ValueError, stripe.SignatureVerificationError) as e:
        logger.warning("Webhook Error: %s", e)
        return HttpResponse(f"Webhook Error: {e}", status=400)

    try:
        handle_stripe_event(event)
    except DatabaseError:
        logger.exception("Processing Stripe event %s failed", event.get('id'))
        return HttpResponse("Database error", status=500)

    return HttpResponse(status=200)


# -------------------------------
# ORDERS
# -------------------------------
@login_required
def my_orders(request):
    orders = Order.objects.filter(user=request.user).prefetch_related(
        Prefetch('items', queryset=OrderItem.objects.select_related('product'))
    ).order_by('-created_at')
    return render(request, 'store/my_orders.html', {'orders': orders})


@login_required
@require_POST
def cancel_my_order(request, pk):
    if cancel_order(pk, request.user):
        messages.success(request, "Your order has been cancelled.")
    else:
        messages.info(request, "This order can no longer be cancelled.")
    return redirect('my_orders')


def _own_order(request, pk):
    return Order.objects.select_related('user').filter(pk=pk, user=request.user).first()


@login_required
def invoice(request, pk):
    from_checkout = request.GET.get('from_checkout') == 'true'
    if from_checkout:
        cart = Cart(request.session)
        if not cart.is_empty:
            cart.clear()

    order = _own_order(request, pk)
    if order is None:
        return HttpResponse("Invoice not found or not yours.", status=404)

    return render(request, 'store/invoice.html', {
        'order': order,
        'items': invoice_items(order),
        'from_checkout': from_checkout,
    })


@login_required
def invoice_pdf(request, pk):
    order = _own_order(request, pk)
    if order is None:
        return HttpResponse("Invoice not found.", status=404)

    response = HttpResponse(render_invoice_pdf(order), content_type='application/pdf')
    response['Content-Disposition'] = f'attachment; filename="{invoice_filename(order)}"'
    return response
