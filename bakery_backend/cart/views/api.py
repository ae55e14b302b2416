# cart/views/api.py

"""
CART API VIEWS

Routes (under /api/cart/):
- GET    /        current user's cart
- DELETE /        empty the cart
- POST   items/   set quantity for one product (0 removes)
"""

from __future__ import annotations

from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from cart.serializers import CartSerializer, SetCartItemInputSerializer
from cart.services import clear_cart, get_or_create_cart, set_cart_item
from products.models import Product


class CartView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["Cart"], responses={200: CartSerializer})
    def get(self, request):
        cart = get_or_create_cart(request.user)
        return Response(CartSerializer(cart).data)

    @extend_schema(tags=["Cart"], responses={200: CartSerializer})
    def delete(self, request):
        clear_cart(request.user)
        cart = get_or_create_cart(request.user)
        return Response(CartSerializer(cart).data)


class CartItemsView(APIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(
        tags=["Cart"],
        request=SetCartItemInputSerializer,
        responses={200: CartSerializer},
    )
    def post(self, request):
        ser = SetCartItemInputSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        product = get_object_or_404(Product, id=ser.validated_data["product_id"])
        cart = set_cart_item(
            request.user,
            product=product,
            quantity=ser.validated_data["quantity"],
        )
        return Response(CartSerializer(cart).data, status=status.HTTP_200_OK)
