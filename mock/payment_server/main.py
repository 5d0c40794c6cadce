import asyncio
import uuid
from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

app = FastAPI(title="Mock Payment Provider", version="1.0.0")

# Account numbers with scripted behaviour
REJECTED_ACCOUNT = "0000000000"
SLOW_ACCOUNT = "9999999999"

# Customer charges known to the verify endpoint, keyed by transaction id
CHARGES = {
    "1001": {"id": 1001, "tx_ref": "STU-1001", "status": "successful", "amount": 110.0, "currency": "NGN"},
    "1002": {"id": 1002, "tx_ref": "STU-1002", "status": "failed", "amount": 50.0, "currency": "NGN"},
}

BANKS = [
    {"id": 1, "code": "044", "name": "Access Bank"},
    {"id": 2, "code": "058", "name": "Guaranty Trust Bank"},
    {"id": 3, "code": "057", "name": "Zenith Bank"},
]


class TransferBody(BaseModel):
    account_bank: str
    account_number: str
    amount: float
    currency: str
    reference: str
    narration: str


class ResolveBody(BaseModel):
    account_number: str
    account_bank: str


def check_auth(authorization: str | None) -> None:
    if not authorization or not authorization.startswith("Bearer "):
        raise HTTPException(status_code=401, detail="missing secret key")


@app.get("/health")
def health(): return {"status": "ok"}


@app.post("/transfers")
async def create_transfer(body: TransferBody, authorization: str | None = Header(None)):
    check_auth(authorization)
    if body.account_number == REJECTED_ACCOUNT:
        return JSONResponse(status_code=400, content={"status": "error", "message": "Account is not valid", "data": None})
    if body.account_number == SLOW_ACCOUNT:
        await asyncio.sleep(30)
    return {
        "status": "success",
        "message": "Transfer Queued Successfully",
        "data": {"id": uuid.uuid4().int % 10_000_000, "reference": body.reference, "amount": body.amount},
    }


@app.get("/banks/{country}")
def list_banks(country: str, authorization: str | None = Header(None)):
    check_auth(authorization)
    if country.upper() != "NG":
        return {"status": "success", "message": "Banks fetched successfully", "data": []}
    return {"status": "success", "message": "Banks fetched successfully", "data": BANKS}


@app.post("/accounts/resolve")
def resolve_account(body: ResolveBody, authorization: str | None = Header(None)):
    check_auth(authorization)
    if body.account_number == REJECTED_ACCOUNT:
        return JSONResponse(status_code=400, content={"status": "error", "message": "Could not resolve account name"})
    return {
        "status": "success",
        "message": "Account details fetched",
        "data": {"account_number": body.account_number, "account_name": "ADA VENDOR"},
    }


@app.get("/transactions/{transaction_id}/verify")
def verify_transaction(transaction_id: str, authorization: str | None = Header(None)):
    check_auth(authorization)
    charge = CHARGES.get(transaction_id)
    if charge is None:
        return JSONResponse(status_code=400, content={"status": "error", "message": "No transaction was found for this id", "data": None})
    return {"status": "success", "message": "Transaction fetched successfully", "data": charge}
